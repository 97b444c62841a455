"""Upload URL issuer blueprint: hands out presigned PUT URLs for captured images."""
from flask import Blueprint, jsonify, request
import logging
from pydantic import ValidationError as PydanticValidationError
from shared.errors import ConfigurationError, PreparationError, ValidationError
from shared.schemas import UploadUrlRequest, UploadUrlResponse
from shared.validation import Validator
from ..services.upload_signer import get_upload_signer
from ..utils import api_error, add_cors_headers, format_validation_errors

logger = logging.getLogger(__name__)

bp = Blueprint('upload_urls', __name__)

# Every verb is routed here so that rejected methods still carry CORS headers
ALL_METHODS = ['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']


@bp.after_request
def apply_cors(response):
    return add_cors_headers(response)


@bp.route('/', methods=ALL_METHODS, provide_automatic_options=False)
def issue_upload_url():
    """Issue a presigned PUT URL and the matching public URL."""
    if request.method == 'OPTIONS':
        return '', 200

    if request.method != 'POST':
        return 'Method not allowed', 405

    # Parsed as JSON whatever the Content-Type, text/plain included
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return api_error('Invalid JSON data', 400)

    try:
        upload_request = UploadUrlRequest.model_validate(data)
        filename = Validator.validate_filename(upload_request.filename)
    except PydanticValidationError as e:
        return api_error(format_validation_errors(e), 400)
    except ValidationError as e:
        return api_error(str(e), 400)

    try:
        target = get_upload_signer().sign_upload(filename, upload_request.content_type)
    except (ConfigurationError, PreparationError) as e:
        return api_error(str(e), 500, 'error')
    except Exception as e:
        logger.error(f"Unexpected error issuing upload URL for {filename}: {e}", exc_info=True,
                     extra={'stage': 'issue_upload_url'})
        return api_error(str(e), 500, 'error')

    logger.info("Issued upload URL", extra={
        'stage': 'issue_upload_url', 'object_key': target.filename, 'content_type': upload_request.content_type,
    })
    response = UploadUrlResponse(
        upload_url=target.upload_url,
        public_url=target.public_url,
        filename=target.filename,
    )
    return jsonify(response.model_dump(by_alias=True))
