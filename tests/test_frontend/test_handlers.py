"""Tests for the capture, pole list and profile handlers."""
import os
from unittest.mock import Mock, call

import pytest

from pole_app.handlers.capture_handler import CaptureHandler, CaptureStep, FileCamera
from pole_app.handlers.pole_list_handler import PoleListHandler
from pole_app.handlers.profile_handler import ProfileHandler
from pole_app.repositories.pole_repository import OperationResult, OperationStatus
from pole_app.services.location_service import LocationFix
from pole_app.services.uploader import UploadTarget
from pole_app.state import SessionState
from shared.enums import PoleStatus, SortOrder
from shared.errors import LocalIOError, NetworkError, PreparationError, ValidationError
from shared.schemas import UserProfile


class MockApp:
    """Mock app class for testing handlers."""
    def __init__(self):
        self.state = SessionState()
        self.camera = Mock()
        self.location_service = Mock()
        self.capture_store = Mock()
        self.uploader = Mock()
        self.repository = Mock()


@pytest.fixture
def mock_app():
    """Create a mock app for testing."""
    app = MockApp()
    app.camera.take_photo.return_value = '/tmp/capture_1.jpg'
    app.location_service.get_current_location.return_value = LocationFix(40.0, -74.0)
    app.capture_store.save.return_value = '/scratch/photo_1.jpg'
    app.uploader.request_upload_target.return_value = UploadTarget(
        upload_url='https://put', public_url='https://pub/poles/1-pole.jpg', filename='poles/1-pole.jpg'
    )
    app.uploader.upload_to_target.return_value = 'https://pub/poles/1-pole.jpg'
    app.repository.insert_pole.return_value = Mock(name='record')
    return app


# Capture handler

def test_capture_runs_every_step_in_order(mock_app):
    handler = CaptureHandler(mock_app)
    steps = []
    handler.add_listener(steps.append)

    outcome = handler.capture()

    assert outcome.succeeded
    assert outcome.message == 'Photo saved successfully'
    assert steps == [
        CaptureStep.IDLE,
        CaptureStep.CAPTURING,
        CaptureStep.LOCATION_RESOLVING,
        CaptureStep.SAVING,
        CaptureStep.REQUESTING_UPLOAD_URL,
        CaptureStep.UPLOADING,
        CaptureStep.RECORDING_METADATA,
        CaptureStep.SUCCESS,
    ]
    mock_app.capture_store.save.assert_called_once_with('/tmp/capture_1.jpg')
    filename = mock_app.uploader.request_upload_target.call_args.args[0]
    assert filename.startswith('pole_') and filename.endswith('.jpg')
    mock_app.uploader.upload_to_target.assert_called_once_with(
        mock_app.uploader.request_upload_target.return_value, '/scratch/photo_1.jpg'
    )
    mock_app.repository.insert_pole.assert_called_once_with(
        'https://pub/poles/1-pole.jpg', latitude=40.0, longitude=-74.0, image_path='/scratch/photo_1.jpg'
    )
    assert outcome.record is mock_app.repository.insert_pole.return_value
    assert mock_app.state.last_capture is outcome
    assert handler.step == CaptureStep.SUCCESS
    assert not handler.busy


def test_capture_without_location_still_records(mock_app):
    mock_app.location_service.get_current_location.return_value = None

    outcome = CaptureHandler(mock_app).capture()

    assert outcome.succeeded
    mock_app.repository.insert_pole.assert_called_once_with(
        'https://pub/poles/1-pole.jpg', latitude=None, longitude=None, image_path='/scratch/photo_1.jpg'
    )


@pytest.mark.parametrize('component, method, error, failed_step', [
    ('camera', 'take_photo', LocalIOError('no camera'), CaptureStep.CAPTURING),
    ('capture_store', 'save', LocalIOError('disk full'), CaptureStep.SAVING),
    ('uploader', 'request_upload_target', PreparationError('issuer 500'), CaptureStep.REQUESTING_UPLOAD_URL),
    ('uploader', 'upload_to_target', NetworkError('PUT 403'), CaptureStep.UPLOADING),
    ('repository', 'insert_pole', NetworkError('insert 500'), CaptureStep.RECORDING_METADATA),
])
def test_capture_failure_reports_originating_step(mock_app, component, method, error, failed_step):
    getattr(getattr(mock_app, component), method).side_effect = error
    handler = CaptureHandler(mock_app)

    outcome = handler.capture()

    assert outcome.step == CaptureStep.FAILED
    assert outcome.failed_step == failed_step
    assert outcome.error is error
    assert outcome.message == f"{failed_step.label} failed: {error}"
    assert handler.step == CaptureStep.FAILED
    assert getattr(getattr(mock_app, component), method).call_count == 1


def test_capture_failure_stops_the_pipeline(mock_app):
    mock_app.uploader.upload_to_target.side_effect = NetworkError('PUT 403')

    outcome = CaptureHandler(mock_app).capture()

    assert outcome.message == 'Uploading failed: PUT 403'
    assert outcome.local_path == '/scratch/photo_1.jpg'
    mock_app.repository.insert_pole.assert_not_called()


def test_capture_can_be_rerun_after_failure(mock_app):
    mock_app.capture_store.save.side_effect = [LocalIOError('busy'), '/scratch/photo_2.jpg']
    handler = CaptureHandler(mock_app)

    assert not handler.capture().succeeded
    assert handler.capture().succeeded


def test_file_camera_copies_source(tmp_path, jpeg_file):
    photo = FileCamera(str(jpeg_file)).take_photo()
    try:
        assert photo != str(jpeg_file)
        assert jpeg_file.exists()
        with open(photo, 'rb') as f:
            assert f.read() == jpeg_file.read_bytes()
    finally:
        os.unlink(photo)


def test_file_camera_missing_source(tmp_path):
    with pytest.raises(LocalIOError):
        FileCamera(str(tmp_path / 'missing.jpg')).take_photo()


# Pole list handler

def page(count, start=0):
    return [Mock(name=f'pole-{i}') for i in range(start, start + count)]


def test_refresh_loads_first_page(mock_app):
    mock_app.repository.list_poles.return_value = page(5)
    handler = PoleListHandler(mock_app)

    assert handler.refresh() is True

    mock_app.repository.list_poles.assert_called_once_with(
        limit=20, offset=0, sort_by=SortOrder.RECENT, user_location=None,
        status_filter=list(PoleStatus),
    )
    assert len(handler.poles) == 5
    assert handler.state.has_more is False
    assert handler.state.offset == 5


def test_full_page_costs_one_extra_empty_fetch(mock_app):
    """Exactly page_size records: has_more stays true until an empty page comes back."""
    mock_app.repository.list_poles.side_effect = [page(20), []]
    handler = PoleListHandler(mock_app)

    handler.refresh()
    assert handler.state.has_more is True

    handler.load_more()
    assert handler.state.has_more is False
    assert len(handler.poles) == 20
    assert mock_app.repository.list_poles.call_args_list[1].kwargs['offset'] == 20

    assert handler.load_more() is False
    assert mock_app.repository.list_poles.call_count == 2


def test_load_more_appends(mock_app):
    first, second = page(20), page(3, start=20)
    mock_app.repository.list_poles.side_effect = [first, second]
    handler = PoleListHandler(mock_app)

    handler.refresh()
    handler.load_more()

    assert handler.poles == first + second
    assert handler.state.offset == 23


def test_fetch_while_in_flight_is_dropped(mock_app):
    handler = PoleListHandler(mock_app)
    nested = []

    def slow_fetch(**kwargs):
        nested.append(handler.load_more())
        nested.append(handler.refresh())
        return page(20)

    mock_app.repository.list_poles.side_effect = slow_fetch

    assert handler.refresh() is True
    assert nested == [False, False]
    assert mock_app.repository.list_poles.call_count == 1
    assert handler.state.loading is False


def test_fetch_failure_keeps_list(mock_app):
    existing = page(20)
    mock_app.repository.list_poles.side_effect = [existing, NetworkError('offline')]
    handler = PoleListHandler(mock_app)
    handler.refresh()

    assert handler.load_more() is False

    assert handler.poles == existing
    assert handler.state.last_error == 'offline'
    assert handler.state.loading is False


def test_change_sort_refetches_only_on_change(mock_app):
    mock_app.repository.list_poles.return_value = page(2)
    handler = PoleListHandler(mock_app)

    assert handler.change_sort('recent') is False
    mock_app.repository.list_poles.assert_not_called()

    handler.change_sort(SortOrder.OLDEST)
    assert mock_app.repository.list_poles.call_args.kwargs['sort_by'] == SortOrder.OLDEST


def test_nearest_resolves_location_once(mock_app):
    mock_app.repository.list_poles.return_value = page(20)
    handler = PoleListHandler(mock_app)

    handler.change_sort('nearest')
    handler.load_more()

    mock_app.location_service.get_current_location.assert_called_once()
    assert mock_app.repository.list_poles.call_args.kwargs['user_location'] == LocationFix(40.0, -74.0)

    handler.change_sort('recent')
    assert handler.state.user_location is None


def test_status_toggles(mock_app):
    mock_app.repository.list_poles.return_value = []
    handler = PoleListHandler(mock_app)

    handler.toggle_status('Cracked')
    assert PoleStatus.CRACKED not in mock_app.repository.list_poles.call_args.kwargs['status_filter']

    handler.toggle_status(PoleStatus.CRACKED)
    assert mock_app.repository.list_poles.call_args.kwargs['status_filter'] == list(PoleStatus)

    handler.clear_all_statuses()
    assert mock_app.repository.list_poles.call_args.kwargs['status_filter'] == []

    handler.select_all_statuses()
    assert mock_app.repository.list_poles.call_args.kwargs['status_filter'] == list(PoleStatus)


def test_filter_change_resets_pagination(mock_app):
    mock_app.repository.list_poles.side_effect = [page(20), page(20), page(1)]
    handler = PoleListHandler(mock_app)
    handler.refresh()
    handler.load_more()

    handler.toggle_status('Normal')

    assert mock_app.repository.list_poles.call_args.kwargs['offset'] == 0
    assert len(handler.poles) == 1


# Profile handler

@pytest.fixture
def profile_app(mock_app):
    mock_app.repository.fetch_or_create_profile.return_value = UserProfile(
        taker_id='device-1', taker_name='abcdefgh12345678'
    )
    mock_app.repository.update_username.return_value = OperationResult(OperationStatus.SUCCESS, 1)
    mock_app.repository.update_profile_picture.return_value = OperationResult(OperationStatus.SUCCESS, 1)
    mock_app.uploader.upload.return_value = 'https://pub/poles/1-profile.jpg'
    return mock_app


def test_load_profile(profile_app):
    handler = ProfileHandler(profile_app)
    profile = handler.load_profile()
    assert profile.taker_name == 'abcdefgh12345678'
    assert profile_app.state.profile is profile


def test_save_username_trims_and_sanitizes(profile_app):
    handler = ProfileHandler(profile_app)
    handler.load_profile()

    result = handler.save_username('  <i>Crew 7</i>  ')

    assert result
    profile_app.repository.update_username.assert_called_once_with('Crew 7')
    assert handler.profile.taker_name == 'Crew 7'


def test_blank_username_rejected(profile_app):
    handler = ProfileHandler(profile_app)
    with pytest.raises(ValidationError):
        handler.save_username('   ')
    profile_app.repository.update_username.assert_not_called()


def test_failed_rename_keeps_cached_profile(profile_app):
    profile_app.repository.update_username.return_value = OperationResult.failed('offline')
    handler = ProfileHandler(profile_app)
    handler.load_profile()

    result = handler.save_username('Crew 7')

    assert not result
    assert handler.profile.taker_name == 'abcdefgh12345678'


def test_change_profile_picture_uploads_then_records(profile_app):
    handler = ProfileHandler(profile_app)
    handler.load_profile()

    result = handler.change_profile_picture('/photos/me.jpg')

    assert result
    path, filename = profile_app.uploader.upload.call_args.args
    assert path == '/photos/me.jpg'
    assert filename.startswith('profile_')
    assert profile_app.repository.update_profile_picture.call_args == call('https://pub/poles/1-profile.jpg')
    assert handler.profile.profile_pic_url == 'https://pub/poles/1-profile.jpg'


def test_change_profile_picture_upload_failure_propagates(profile_app):
    profile_app.uploader.upload.side_effect = PreparationError('issuer down')
    with pytest.raises(PreparationError):
        ProfileHandler(profile_app).change_profile_picture('/photos/me.jpg')
    profile_app.repository.update_profile_picture.assert_not_called()
