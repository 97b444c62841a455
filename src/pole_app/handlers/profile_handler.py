"""Profile handlers for the Pole Capture client."""
import logging

from shared.validation import Validator
from ..services.uploader import generate_filename


class ProfileHandler:
    """Handles the device's user profile."""

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def profile(self):
        return self.app.state.profile

    def load_profile(self):
        """Fetch the profile, creating one on first use. Raises NetworkError."""
        profile = self.app.repository.fetch_or_create_profile()
        self.app.state.profile = profile
        self.logger.info(f"Profile loaded: {profile.taker_name}")
        return profile

    def save_username(self, name):
        """Rename the profile.

        Raises:
            ValidationError: If the name is blank or too long
        """
        name = Validator.validate_username(name)
        result = self.app.repository.update_username(name)
        if result.ok and self.profile is not None:
            self.app.state.profile = self.profile.model_copy(update={'taker_name': name})
        return result

    def change_profile_picture(self, image_path):
        """Upload ``image_path`` and point the profile at it.

        Upload failures propagate; recording the URL reports an OperationResult.
        """
        public_url = self.app.uploader.upload(image_path, generate_filename('profile'))
        self.logger.info(f"Profile picture uploaded to: {public_url}")
        result = self.app.repository.update_profile_picture(public_url)
        if result.ok and self.profile is not None:
            self.app.state.profile = self.profile.model_copy(update={'profile_pic_url': public_url})
        return result
