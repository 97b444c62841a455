"""Pole Capture client application object."""
import logging

import requests

from .config_manager import ConfigManager
from .device import DeviceIdentity
from .state import SessionState
from .handlers.capture_handler import CaptureHandler
from .handlers.pole_list_handler import PoleListHandler
from .handlers.profile_handler import ProfileHandler
from .repositories.pole_repository import PoleRepository
from .services.api_service import APIService
from .services.capture_store import CaptureStore
from .services.classifier import RandomPoleClassifier
from .services.location_service import LocationService
from .services.uploader import RemoteObjectUploader


class PoleCaptureApp:
    """Builds the client components once and holds them for the process lifetime.

    Network components share one HTTP session, closed by ``close()``. Missing
    network settings fail at construction with a ConfigurationError.
    """

    def __init__(self, config=None, session=None, location_provider=None, classifier=None, camera=None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.info("Starting Pole Capture initialization")

        self.config = config or ConfigManager()
        self.config.require(*ConfigManager.NETWORK_SETTINGS)
        self.logger.info(f"Configuration loaded: API URL={self.config.api_base_url}")

        self.state = SessionState()
        self.state.pole_list.page_size = self.config.page_size
        self.device = DeviceIdentity(self.config.resolved_data_dir, override=self.config.device_id or None)

        self.session = session or requests.Session()
        self.api_service = APIService(
            self.config.api_base_url,
            anon_key=self.config.api_anon_key,
            timeout=self.config.api_timeout,
            session=self.session,
        )
        self.uploader = RemoteObjectUploader(
            self.config.upload_url_endpoint,
            content_type=self.config.upload_content_type,
            session=self.session,
            timeout=self.config.api_timeout,
        )
        self.capture_store = CaptureStore(self.config.resolved_photo_dir)
        self.location_service = LocationService(
            location_provider,
            timeout=self.config.location_timeout,
            maximum_age=self.config.location_maximum_age,
        )
        self.repository = PoleRepository(self.api_service, self.device, classifier or RandomPoleClassifier())
        self.camera = camera
        self.logger.debug("Services initialized")

        self.capture_handler = CaptureHandler(self)
        self.pole_list_handler = PoleListHandler(self)
        self.profile_handler = ProfileHandler(self)
        self.logger.info("All handlers initialized")

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
