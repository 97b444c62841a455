"""Capture flow: photo, location, local save, upload, metadata record."""
import enum
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Optional, Protocol

from shared.errors import LocalIOError
from ..services.uploader import generate_filename


class CaptureStep(str, enum.Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    LOCATION_RESOLVING = "location_resolving"
    SAVING = "saving"
    REQUESTING_UPLOAD_URL = "requesting_upload_url"
    UPLOADING = "uploading"
    RECORDING_METADATA = "recording_metadata"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def label(self):
        return self.value.replace('_', ' ').capitalize()


@dataclass
class CaptureOutcome:
    step: CaptureStep
    record: Optional[object] = None
    local_path: Optional[str] = None
    public_url: Optional[str] = None
    location: Optional[object] = None
    failed_step: Optional[CaptureStep] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self):
        return self.step == CaptureStep.SUCCESS

    @property
    def message(self):
        if self.succeeded:
            return "Photo saved successfully"
        return f"{self.failed_step.label} failed: {self.error}"


class Camera(Protocol):
    def take_photo(self) -> str:
        ...


class FileCamera:
    """Camera stand-in that "captures" an existing image file.

    The source is copied to a temporary file first, since the capture store
    moves whatever it is given.
    """

    def __init__(self, source_path):
        self.source_path = source_path

    def take_photo(self):
        if not os.path.isfile(self.source_path):
            raise LocalIOError(f"No image at {self.source_path}")
        fd, temp_path = tempfile.mkstemp(suffix='.jpg', prefix='capture_')
        os.close(fd)
        try:
            shutil.copyfile(self.source_path, temp_path)
        except OSError as e:
            os.unlink(temp_path)
            raise LocalIOError(f"Failed to read {self.source_path}: {e}") from e
        return temp_path


class CaptureHandler:
    """Runs one capture attempt through every stage in order.

    Each stage depends on the previous one's output, so they never overlap.
    Nothing is retried: a failure stops the attempt at ``FAILED`` with the
    originating step recorded, and the caller may start over. Overlapping
    calls are not prevented here; callers keep the trigger disabled while
    ``busy`` is true.
    """

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger(self.__class__.__name__)
        self.step = CaptureStep.IDLE
        self._listeners = []

    @property
    def busy(self):
        return self.step not in (CaptureStep.IDLE, CaptureStep.SUCCESS, CaptureStep.FAILED)

    def add_listener(self, callback):
        """Register ``callback(step)``, called on every step change."""
        self._listeners.append(callback)

    def _enter(self, step):
        self.step = step
        self.logger.debug("Capture step entered", extra={'stage': step.value})
        for callback in self._listeners:
            callback(step)

    def capture(self, camera=None):
        """Capture one pole photo and record it. Returns a CaptureOutcome."""
        camera = camera or self.app.camera
        outcome = CaptureOutcome(step=CaptureStep.IDLE)
        self._enter(CaptureStep.IDLE)

        try:
            self._enter(CaptureStep.CAPTURING)
            photo_path = camera.take_photo()
            self.logger.info(f"Photo captured: {photo_path}", extra={'stage': self.step.value})

            self._enter(CaptureStep.LOCATION_RESOLVING)
            outcome.location = self.app.location_service.get_current_location()
            if outcome.location is None:
                self.logger.warning("Saving capture without a location", extra={'stage': self.step.value})

            self._enter(CaptureStep.SAVING)
            outcome.local_path = self.app.capture_store.save(photo_path)

            self._enter(CaptureStep.REQUESTING_UPLOAD_URL)
            target = self.app.uploader.request_upload_target(generate_filename('pole'))

            self._enter(CaptureStep.UPLOADING)
            outcome.public_url = self.app.uploader.upload_to_target(target, outcome.local_path)
            self.logger.info(f"Photo uploaded to: {outcome.public_url}", extra={'stage': self.step.value})

            self._enter(CaptureStep.RECORDING_METADATA)
            location = outcome.location
            outcome.record = self.app.repository.insert_pole(
                outcome.public_url,
                latitude=location.latitude if location else None,
                longitude=location.longitude if location else None,
                image_path=outcome.local_path,
            )
        except Exception as e:
            outcome.failed_step = self.step
            outcome.error = e
            outcome.step = CaptureStep.FAILED
            self.logger.error(f"Capture failed: {e}", extra={'stage': self.step.value})
            self._enter(CaptureStep.FAILED)
            return outcome

        outcome.step = CaptureStep.SUCCESS
        self._enter(CaptureStep.SUCCESS)
        self.app.state.last_capture = outcome
        return outcome
