"""Presigned upload URL service for S3-compatible object storage (Cloudflare R2)."""

import logging
import time
from dataclasses import dataclass
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app
from shared.errors import ConfigurationError, PreparationError
from shared.schemas import DEFAULT_CONTENT_TYPE


logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = 'poles'
DEFAULT_EXPIRES_IN = 3600  # seconds


@dataclass(frozen=True)
class UploadTarget:
    """Where a client should PUT an object and where it will be readable afterwards."""
    upload_url: str
    public_url: str
    filename: str


class UploadSigner:
    """Issues time-limited presigned PUT URLs. Stateless: no object exists until the client PUTs."""

    def __init__(self, access_key_id, secret_access_key, bucket_name, public_base_url,
                 account_id=None, endpoint_url=None, key_prefix=DEFAULT_KEY_PREFIX,
                 expires_in=DEFAULT_EXPIRES_IN, clock=time.time):
        required = {
            'STORAGE_ACCESS_KEY_ID': access_key_id,
            'STORAGE_SECRET_ACCESS_KEY': secret_access_key,
            'STORAGE_BUCKET': bucket_name,
            'STORAGE_PUBLIC_URL': public_base_url,
            'STORAGE_ACCOUNT_ID or STORAGE_ENDPOINT_URL': account_id or endpoint_url,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"Upload signer configuration incomplete. Missing: {', '.join(missing)}")

        self.bucket_name = bucket_name
        self.public_base_url = public_base_url.rstrip('/')
        self.endpoint_url = endpoint_url or f"https://{account_id}.r2.cloudflarestorage.com"
        self.key_prefix = key_prefix.strip('/')
        self.expires_in = int(expires_in)
        self._clock = clock

        self.client = boto3.client(
            's3',
            endpoint_url=self.endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name='auto',
            config=Config(signature_version='s3v4'),
        )
        logger.info(f"Upload signer initialized for bucket {self.bucket_name} at {self.endpoint_url}")

    @classmethod
    def from_config(cls, config):
        """Build a signer from a Flask config mapping."""
        return cls(
            access_key_id=config.get('STORAGE_ACCESS_KEY_ID'),
            secret_access_key=config.get('STORAGE_SECRET_ACCESS_KEY'),
            bucket_name=config.get('STORAGE_BUCKET'),
            public_base_url=config.get('STORAGE_PUBLIC_URL'),
            account_id=config.get('STORAGE_ACCOUNT_ID'),
            endpoint_url=config.get('STORAGE_ENDPOINT_URL'),
            key_prefix=config.get('STORAGE_KEY_PREFIX') or DEFAULT_KEY_PREFIX,
            expires_in=config.get('UPLOAD_URL_EXPIRES') or DEFAULT_EXPIRES_IN,
        )

    def build_object_key(self, filename):
        """Prefix the filename with the folder and a millisecond timestamp."""
        timestamp = int(self._clock() * 1000)
        return f"{self.key_prefix}/{timestamp}-{filename}"

    def public_url_for(self, object_key):
        return f"{self.public_base_url}/{object_key}"

    def sign_upload(self, filename, content_type=None):
        """
        Produce a presigned PUT URL and the future public URL for ``filename``.

        The signature covers the Content-Type header, so the client must PUT
        with exactly ``content_type``.

        Returns:
            UploadTarget

        Raises:
            PreparationError: If signing fails
        """
        content_type = content_type or DEFAULT_CONTENT_TYPE
        object_key = self.build_object_key(filename)

        try:
            upload_url = self.client.generate_presigned_url(
                'put_object',
                Params={
                    'Bucket': self.bucket_name,
                    'Key': object_key,
                    'ContentType': content_type,
                },
                ExpiresIn=self.expires_in,
                HttpMethod='PUT',
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to sign upload for {object_key}: {e}")
            raise PreparationError(str(e)) from e

        logger.info(f"Signed upload URL for {object_key} (expires in {self.expires_in}s)")
        return UploadTarget(
            upload_url=upload_url,
            public_url=self.public_url_for(object_key),
            filename=object_key,
        )


def get_upload_signer():
    """Get the signer for the current app, creating it on first use.

    Held in ``app.extensions`` for the lifetime of the app.
    """
    signer = current_app.extensions.get('upload_signer')
    if signer is None:
        signer = UploadSigner.from_config(current_app.config)
        current_app.extensions['upload_signer'] = signer
    return signer
