"""Health blueprint: connectivity probe for clients."""
from flask import Blueprint, jsonify
import logging
from sqlalchemy import text
from ..models import db
from ..utils import handle_api_exception

logger = logging.getLogger(__name__)

bp = Blueprint('health', __name__, url_prefix='/api')


@bp.route('/health', methods=['GET'])
def health():
    """Report whether the metadata database answers a trivial query."""
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        return handle_api_exception(e, 'reach database', 503)
    return jsonify({'status': 'ok'})
