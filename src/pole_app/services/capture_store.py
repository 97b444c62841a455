"""Local scratch storage for captured photos awaiting upload."""
import logging
import os
import shutil
import time
from pathlib import Path

from shared.errors import LocalIOError

PHOTO_EXTENSIONS = ('.jpg', '.png')


class CaptureStore:
    """Keeps a local copy of each capture before it is uploaded.

    The directory is shared between capture and listing without locking;
    a move within one filesystem is atomic, so listings never see a partial file.
    """

    def __init__(self, photos_dir, clock=time.time):
        self.photos_dir = Path(photos_dir)
        self._clock = clock
        self.logger = logging.getLogger(self.__class__.__name__)

    def ensure_directory(self):
        """Create the scratch directory; a no-op if it already exists."""
        try:
            self.photos_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Error initializing photo directory {self.photos_dir}: {e}")
            raise LocalIOError(f"Cannot create photo directory {self.photos_dir}: {e}") from e
        return self.photos_dir

    def save(self, source_path):
        """Move ``source_path`` into the scratch directory.

        Returns:
            str: The new path, ``photo_<ms>.jpg`` inside the scratch directory

        Raises:
            LocalIOError: If the source is missing or the move fails
        """
        self.ensure_directory()
        source_path = str(source_path)
        if source_path.startswith('file://'):
            source_path = source_path[len('file://'):]

        timestamp = int(self._clock() * 1000)
        dest_path = self.photos_dir / f"photo_{timestamp}.jpg"

        try:
            shutil.move(source_path, dest_path)
        except OSError as e:
            self.logger.error(f"Error saving photo {source_path}: {e}")
            raise LocalIOError(f"Failed to save photo {source_path}: {e}") from e

        self.logger.info(f"Photo saved locally: {dest_path}")
        return str(dest_path)

    def list_photos(self):
        """Return image paths in the scratch directory, newest first by modification time."""
        self.ensure_directory()
        try:
            entries = [
                entry for entry in os.scandir(self.photos_dir)
                if entry.is_file() and entry.name.lower().endswith(PHOTO_EXTENSIONS)
            ]
            entries.sort(key=lambda entry: entry.stat().st_mtime, reverse=True)
        except OSError as e:
            self.logger.error(f"Error loading photos from {self.photos_dir}: {e}")
            raise LocalIOError(f"Failed to list photos in {self.photos_dir}: {e}") from e
        return [entry.path for entry in entries]

    @staticmethod
    def photo_metadata(filepath):
        """Derive ``{filename, timestamp, filepath}`` from a scratch photo path.

        ``timestamp`` is the capture time in epoch milliseconds, or None when
        the name does not follow the ``photo_<ms>`` pattern.
        """
        filename = os.path.basename(filepath)
        stem, _ = os.path.splitext(filename)
        try:
            timestamp = int(stem.replace('photo_', '', 1))
        except ValueError:
            timestamp = None
        return {
            'filename': filename,
            'timestamp': timestamp,
            'filepath': filepath,
        }
