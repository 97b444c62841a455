"""Poles blueprint: device-scoped metadata records for captured poles."""
from flask import Blueprint, jsonify, request
import logging
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, delete
from ..models import db, PoleCapture
from shared.enums import SortOrder
from shared.errors import ValidationError
from shared.models import now, to_storage_datetime
from shared.schemas import PoleCreateRequest, PoleRecord
from shared.validation import Validator
from ..utils import api_error, handle_api_exception, format_validation_errors

logger = logging.getLogger(__name__)

bp = Blueprint('poles', __name__, url_prefix='/api')

DEFAULT_PAGE_SIZE = 20
SERVER_SORT_ORDERS = [SortOrder.RECENT.value, SortOrder.OLDEST.value]


def serialize_pole(pole):
    return PoleRecord.model_validate(pole).model_dump(mode='json')


def _int_arg(name, default, minimum):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
    if value < minimum:
        raise ValidationError(f"{name} must be at least {minimum}")
    return value


@bp.route('/poles', methods=['GET'])
def list_poles():
    """List one taker's poles, newest or oldest first, optionally filtered by status.

    An absent or empty ``status`` list means no status filter.
    """
    try:
        taker_id = Validator.validate_required(request.args.get('taker_id'), 'taker_id')
        order = Validator.validate_sort_order(request.args.get('order', SortOrder.RECENT.value), SERVER_SORT_ORDERS)
        limit = Validator.validate_page_size(_int_arg('limit', DEFAULT_PAGE_SIZE, 1))
        offset = _int_arg('offset', 0, 0)
        statuses = Validator.validate_statuses([s for s in request.args.getlist('status') if s])
    except ValidationError as e:
        return api_error(str(e), 400)

    query = select(PoleCapture).where(PoleCapture.taker_id == taker_id)
    if statuses:
        query = query.where(PoleCapture.status.in_(statuses))

    if order == SortOrder.OLDEST:
        query = query.order_by(PoleCapture.created_at.asc(), PoleCapture.id.asc())
    else:
        query = query.order_by(PoleCapture.created_at.desc(), PoleCapture.id.desc())

    query = query.limit(limit).offset(offset)

    try:
        poles = db.session.execute(query).scalars().all()
    except Exception as e:
        return handle_api_exception(e, 'list poles')

    logger.debug(f"Listed {len(poles)} poles for {taker_id} (order={order.value}, limit={limit}, offset={offset})")
    return jsonify([serialize_pole(pole) for pole in poles])


@bp.route('/poles', methods=['POST'])
def create_pole():
    """Record a captured pole. ``created_at`` is assigned here."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error('Invalid JSON data', 400)

    try:
        pole_request = PoleCreateRequest.model_validate(data)
    except PydanticValidationError as e:
        return api_error(format_validation_errors(e), 400)

    try:
        pole = PoleCapture(created_at=now(), **pole_request.model_dump())
        db.session.add(pole)
        db.session.commit()
        db.session.refresh(pole)
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, 'create pole')

    logger.info(f"Recorded pole {pole.image_uri}", extra={
        'stage': 'record_metadata', 'pole_id': pole.id, 'taker_id': pole.taker_id, 'status': pole.status.value,
    })
    return jsonify(serialize_pole(pole)), 201


@bp.route('/poles', methods=['DELETE'])
def delete_poles():
    """Delete a taker's poles by ``created_at`` or by ``image_uri`` (exactly one)."""
    taker_id = request.args.get('taker_id')
    created_at = request.args.get('created_at')
    image_uri = request.args.get('image_uri')

    if not taker_id:
        return api_error('taker_id is required', 400)
    if bool(created_at) == bool(image_uri):
        return api_error('Exactly one of created_at or image_uri is required', 400)

    statement = delete(PoleCapture).where(PoleCapture.taker_id == taker_id)
    if created_at:
        try:
            statement = statement.where(PoleCapture.created_at == to_storage_datetime(created_at))
        except ValueError:
            return api_error('created_at must be an ISO-8601 timestamp', 400)
    else:
        statement = statement.where(PoleCapture.image_uri == image_uri)

    try:
        result = db.session.execute(statement)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, 'delete pole')

    logger.info(f"Deleted {result.rowcount} pole(s)", extra={'stage': 'delete_pole', 'taker_id': taker_id})
    return jsonify({'deleted': result.rowcount})
