"""Users blueprint: one profile row per device."""
from flask import Blueprint, jsonify, request
import logging
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from ..models import db, UserData
from shared.models import now
from shared.schemas import UserCreateRequest, UserUpdateRequest, UserProfile
from ..utils import api_error, handle_api_exception, format_validation_errors

logger = logging.getLogger(__name__)

bp = Blueprint('users', __name__, url_prefix='/api')


def serialize_user(user):
    return UserProfile.model_validate(user).model_dump(mode='json')


@bp.route('/users/<taker_id>', methods=['GET'])
def get_user(taker_id):
    """Get the profile for a taker."""
    user = db.session.execute(select(UserData).where(UserData.taker_id == taker_id)).scalar_one_or_none()
    if user is None:
        return api_error('User not found', 404, 'debug')
    return jsonify(serialize_user(user))


@bp.route('/users', methods=['POST'])
def create_user():
    """Create a profile. A second profile for the same taker is rejected with 409."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error('Invalid JSON data', 400)

    try:
        user_request = UserCreateRequest.model_validate(data)
    except PydanticValidationError as e:
        return api_error(format_validation_errors(e), 400)

    try:
        user = UserData(**user_request.model_dump())
        db.session.add(user)
        db.session.commit()
        db.session.refresh(user)
    except IntegrityError:
        db.session.rollback()
        return api_error(f'User {user_request.taker_id} already exists', 409)
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, 'create user')

    logger.info(f"Created user profile for {user.taker_id}")
    return jsonify(serialize_user(user)), 201


@bp.route('/users/<taker_id>', methods=['PATCH'])
def update_user(taker_id):
    """Partially update a profile's name and/or picture URL."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error('Invalid JSON data', 400)

    try:
        user_request = UserUpdateRequest.model_validate(data)
    except PydanticValidationError as e:
        return api_error(format_validation_errors(e), 400)

    values = user_request.model_dump(exclude_unset=True)
    values['updated_at'] = now()

    try:
        result = db.session.execute(
            update(UserData).where(UserData.taker_id == taker_id).values(**values)
        )
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, 'update user')

    logger.info(f"Updated {result.rowcount} user profile(s) for {taker_id}: {sorted(values)}")
    return jsonify({'updated': result.rowcount})
