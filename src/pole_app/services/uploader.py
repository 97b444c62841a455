"""Uploads captured images to object storage through presigned URLs."""
import logging
import os
import random
import time
from dataclasses import dataclass

import requests
from pydantic import ValidationError as PydanticValidationError

from shared.errors import LocalIOError, NetworkError, NotFoundError, PreparationError
from shared.schemas import DEFAULT_CONTENT_TYPE, UploadUrlResponse
from shared.utils import redact_signed_url


def generate_filename(prefix='pole'):
    """Generate a unique-enough filename such as ``pole_1760871234567_42.jpg``."""
    timestamp = int(time.time() * 1000)
    return f"{prefix}_{timestamp}_{random.randint(0, 9999)}.jpg"


@dataclass(frozen=True)
class UploadTarget:
    upload_url: str
    public_url: str
    filename: str


class RemoteObjectUploader:
    """Client side of the presigned-URL upload flow.

    The whole file is read into memory before the PUT; there is no streaming.
    """

    def __init__(self, issuer_url, content_type=DEFAULT_CONTENT_TYPE, session=None, timeout=None):
        self.issuer_url = issuer_url
        self.content_type = content_type
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    def _request_kwargs(self, **kwargs):
        if self.timeout is not None:
            kwargs['timeout'] = self.timeout
        return kwargs

    def request_upload_target(self, filename):
        """Ask the issuer for a presigned PUT URL.

        Raises:
            PreparationError: On a non-2xx reply or an unreadable body
            NetworkError: If the issuer cannot be reached
        """
        self.logger.info(f"Requesting presigned URL for {filename}")
        try:
            response = self.session.post(
                self.issuer_url,
                **self._request_kwargs(json={'filename': filename, 'contentType': self.content_type})
            )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Upload URL issuer unreachable: {e}")
            raise NetworkError(f"Upload URL issuer unreachable: {e}") from e

        if not response.ok:
            self.logger.error(f"Failed to get presigned URL: {response.status_code} {response.text}")
            raise PreparationError(
                f"Failed to get presigned URL: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            issued = UploadUrlResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise PreparationError(f"Malformed presigned URL response: {e}") from e

        self.logger.debug(f"Received upload URL {redact_signed_url(issued.upload_url)}")
        return UploadTarget(
            upload_url=issued.upload_url,
            public_url=issued.public_url,
            filename=issued.filename,
        )

    def read_local_file(self, local_path):
        """Read the whole file into memory.

        Raises:
            NotFoundError: If the file does not exist
            LocalIOError: If it cannot be read
        """
        file_path = str(local_path)
        if file_path.startswith('file://'):
            file_path = file_path[len('file://'):]

        if not os.path.exists(file_path):
            raise NotFoundError(f"File not found at path: {file_path}")

        try:
            with open(file_path, 'rb') as f:
                data = f.read()
        except OSError as e:
            self.logger.error(f"Failed to read photo file {file_path}: {e}")
            raise LocalIOError(f"Failed to read {file_path}: {e}") from e

        self.logger.debug(f"Read {len(data)} bytes from {file_path}")
        return data

    def put_bytes(self, target, data):
        """PUT ``data`` to the presigned URL with the signed Content-Type.

        Raises:
            NetworkError: On transport failure or a non-2xx reply
        """
        try:
            response = self.session.put(
                target.upload_url,
                **self._request_kwargs(data=data, headers={'Content-Type': self.content_type})
            )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Upload of {target.filename} failed: {e}")
            raise NetworkError(f"Upload failed: {e}") from e

        if not response.ok:
            self.logger.error(f"Upload of {target.filename} failed: {response.status_code} {response.text}")
            raise NetworkError(f"Upload failed: {response.status_code} {response.text}",
                               status_code=response.status_code, body=response.text)

        self.logger.info(f"Uploaded {len(data)} bytes to {target.filename}")

    def upload_to_target(self, target, local_path):
        """Upload ``local_path`` to an already issued target and return its public URL."""
        data = self.read_local_file(local_path)
        self.put_bytes(target, data)
        return target.public_url

    def upload(self, local_path, filename):
        """Run the full flow for one file and return the public URL from the issuer."""
        target = self.request_upload_target(filename)
        return self.upload_to_target(target, local_path)
