"""Command line front end for the Pole Capture client."""
import click

from shared.enums import PoleStatus, SortOrder
from shared.errors import PoleCaptureError
from shared.utils import format_confidence, format_location, format_timestamp, maps_url
from shared.validation import Validator
from .app import PoleCaptureApp
from .config_manager import ConfigManager
from .handlers.capture_handler import FileCamera
from .logging_config import setup_logging
from .services.capture_store import CaptureStore
from .services.location_service import StaticLocationProvider


STATUS_CHOICES = [status.value for status in PoleStatus]
SORT_CHOICES = [order.value for order in SortOrder]


def _location_provider(lat, lon):
    if lat is None or lon is None:
        return None
    return StaticLocationProvider(lat, lon)


def _build_app(ctx, lat=None, lon=None):
    try:
        return PoleCaptureApp(config=ctx.obj['config'], location_provider=_location_provider(lat, lon))
    except PoleCaptureError as e:
        raise click.ClickException(str(e))


def _echo_pole(pole):
    click.echo(f"{pole.status.value:<11} {format_timestamp(pole.created_at)}")
    click.echo(f"    created_at: {pole.created_at.isoformat()}")
    click.echo(f"    {format_location(pole)}")
    click.echo(f"    {format_confidence(pole.lower_confidence, pole.upper_confidence)}")
    click.echo(f"    {pole.image_uri}")
    link = maps_url(pole.latitude, pole.longitude)
    if link:
        click.echo(f"    {link}")


@click.group()
@click.pass_context
def cli(ctx):
    """Capture utility pole photos and browse this device's captures."""
    setup_logging()
    ctx.ensure_object(dict)
    try:
        ctx.obj['config'] = ConfigManager()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")


@cli.command()
@click.argument('photo', type=click.Path(exists=True, dir_okay=False))
@click.option('--lat', type=float, help='Latitude of the capture')
@click.option('--lon', type=float, help='Longitude of the capture')
@click.pass_context
def capture(ctx, photo, lat, lon):
    """Upload PHOTO as a new pole capture. The original file is left in place."""
    with _build_app(ctx, lat, lon) as app:
        app.capture_handler.add_listener(lambda step: click.echo(f"... {step.label}", err=True))
        outcome = app.capture_handler.capture(FileCamera(photo))
    if not outcome.succeeded:
        raise click.ClickException(outcome.message)
    click.echo(outcome.message)
    _echo_pole(outcome.record)


@cli.command('list')
@click.option('--sort', 'sort_by', type=click.Choice(SORT_CHOICES), default=SortOrder.RECENT.value, show_default=True)
@click.option('--status', 'statuses', type=click.Choice(STATUS_CHOICES), multiple=True,
              help='Only list poles with this status; repeatable. Omit to list every status')
@click.option('--limit', type=click.IntRange(1, Validator.MAX_PAGE_SIZE), default=None,
              help='Page size (defaults to the configured page size)')
@click.option('--offset', type=int, default=0, show_default=True)
@click.option('--lat', type=float, help='Your latitude, for --sort nearest')
@click.option('--lon', type=float, help='Your longitude, for --sort nearest')
@click.pass_context
def list_poles(ctx, sort_by, statuses, limit, offset, lat, lon):
    """List one page of this device's poles."""
    with _build_app(ctx, lat, lon) as app:
        limit = limit or app.config.page_size
        user_location = None
        if sort_by == SortOrder.NEAREST.value:
            user_location = app.location_service.get_current_location()
            if user_location is None:
                click.echo("No location given; nearest falls back to most recent first", err=True)
        try:
            poles = app.repository.list_poles(
                limit=limit,
                offset=offset,
                sort_by=sort_by,
                user_location=user_location,
                status_filter=list(statuses),
            )
        except PoleCaptureError as e:
            raise click.ClickException(str(e))

    if not poles:
        click.echo("No poles captured yet.")
        return
    for pole in poles:
        _echo_pole(pole)
    if len(poles) == limit:
        click.echo(f"More may be available: --offset {offset + limit}")


@cli.command()
@click.option('--created-at', help='Delete the pole captured at this timestamp')
@click.option('--image-uri', help='Delete the pole with this image URL')
@click.pass_context
def delete(ctx, created_at, image_uri):
    """Delete one of this device's poles by capture time or image URL."""
    if bool(created_at) == bool(image_uri):
        raise click.UsageError("Give exactly one of --created-at or --image-uri")

    with _build_app(ctx) as app:
        if created_at:
            result = app.repository.delete_pole_by_created_at(created_at)
        else:
            result = app.repository.delete_pole_by_image_uri(image_uri)

    if not result:
        raise click.ClickException(f"Failed to delete pole: {result.error}")
    if result.affected:
        click.echo("Pole deleted successfully")
    else:
        click.echo("No matching pole found")


@cli.command()
@click.option('--rename', 'new_name', help='Change the display name')
@click.option('--picture', type=click.Path(exists=True, dir_okay=False), help='Upload a new profile picture')
@click.pass_context
def profile(ctx, new_name, picture):
    """Show this device's profile, optionally renaming it or changing its picture."""
    with _build_app(ctx) as app:
        handler = app.profile_handler
        try:
            handler.load_profile()
            if new_name is not None:
                result = handler.save_username(new_name)
                if not result:
                    raise click.ClickException(f"Failed to update username: {result.error}")
            if picture:
                result = handler.change_profile_picture(picture)
                if not result:
                    raise click.ClickException(f"Failed to update profile picture: {result.error}")
        except PoleCaptureError as e:
            raise click.ClickException(str(e))
        current = handler.profile

    click.echo(f"Device:  {current.taker_id}")
    click.echo(f"Name:    {current.taker_name}")
    click.echo(f"Picture: {current.profile_pic_url or '-'}")


@cli.command('local-photos')
@click.pass_context
def local_photos(ctx):
    """List photos kept in the local scratch directory, newest first."""
    store = CaptureStore(ctx.obj['config'].resolved_photo_dir)
    try:
        paths = store.list_photos()
    except PoleCaptureError as e:
        raise click.ClickException(str(e))
    if not paths:
        click.echo("No local photos.")
        return
    for path in paths:
        meta = CaptureStore.photo_metadata(path)
        click.echo(f"{meta['filename']}  {meta['timestamp'] or '-'}  {meta['filepath']}")


@cli.command()
@click.pass_context
def check(ctx):
    """Check that the metadata backend is reachable."""
    with _build_app(ctx) as app:
        connected = app.api_service.check_connection()
    if not connected:
        click.echo("Backend unreachable", err=True)
        ctx.exit(1)
    click.echo("Backend connected")


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
