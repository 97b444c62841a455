"""Stable per-device identity standing in for user authentication."""
import logging
import uuid
from pathlib import Path


class DeviceIdentity:
    """Provides the ``taker_id`` used to scope every remote record.

    The identifier is generated once and persisted in the data directory.
    """

    UNKNOWN_DEVICE = 'unknown-device'
    ID_FILENAME = 'device_id'

    def __init__(self, data_dir, override=None):
        self.data_dir = Path(data_dir)
        self.logger = logging.getLogger(self.__class__.__name__)
        self._taker_id = override or None

    @property
    def taker_id(self):
        if self._taker_id is None:
            self._taker_id = self._load_or_create()
        return self._taker_id

    def _load_or_create(self):
        id_path = self.data_dir / self.ID_FILENAME
        try:
            if id_path.exists():
                stored = id_path.read_text(encoding='utf-8').strip()
                if stored:
                    return stored
                self.logger.warning(f"Empty device id file at {id_path}, generating a new identifier")

            self.data_dir.mkdir(parents=True, exist_ok=True)
            new_id = str(uuid.uuid4())
            id_path.write_text(new_id, encoding='utf-8')
            self.logger.info(f"Generated device id {new_id}")
            return new_id
        except OSError as e:
            self.logger.error(f"Error getting device ID from {id_path}: {e}")
            return self.UNKNOWN_DEVICE
