"""Repository for the remote pole and user profile tables."""
import enum
import logging
import secrets
import string
from dataclasses import dataclass
from typing import Optional

from shared.enums import PoleStatus, SortOrder
from shared.errors import PoleCaptureError
from shared.schemas import PoleRecord, UserProfile
from ..services.classifier import RandomPoleClassifier
from ..services.distance_ranker import rank_by_distance

USERNAME_ALPHABET = string.ascii_letters + string.digits
USERNAME_LENGTH = 16


def generate_random_username(length=USERNAME_LENGTH):
    """Random alphanumeric display name for a freshly created profile."""
    return ''.join(secrets.choice(USERNAME_ALPHABET) for _ in range(length))


class OperationStatus(str, enum.Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a delete or update.

    Truthy whenever the remote call itself did not fail, so NOT_FOUND (zero
    rows affected) is still truthy. Inspect ``status`` to tell it apart.
    """
    status: OperationStatus
    affected: int = 0
    error: Optional[str] = None

    @property
    def ok(self):
        return self.status != OperationStatus.ERROR

    def __bool__(self):
        return self.ok

    @classmethod
    def from_count(cls, affected):
        return cls(OperationStatus.SUCCESS if affected else OperationStatus.NOT_FOUND, affected)

    @classmethod
    def failed(cls, error):
        return cls(OperationStatus.ERROR, error=str(error))


class PoleRepository:
    """Device-scoped CRUD over the metadata API.

    Every operation is scoped to ``device.taker_id``. Creates and reads raise
    NetworkError; deletes and profile updates never raise and report an
    OperationResult instead.
    """

    def __init__(self, api_service, device, classifier=None):
        self.api = api_service
        self.device = device
        self.classifier = classifier or RandomPoleClassifier()
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def taker_id(self):
        return self.device.taker_id

    # Pole operations
    def insert_pole(self, image_uri, latitude=None, longitude=None, image_path=None, classification=None):
        """Record a captured pole and return the stored record.

        The status comes from the classifier (random placeholder by default).
        Missing coordinates are written as 0, the "unknown" sentinel.
        """
        classification = classification or self.classifier.classify(image_path)
        record = {
            'taker_id': self.taker_id,
            'latitude': latitude or 0,
            'longitude': longitude or 0,
            'image_uri': image_uri,
            'status': classification.status.value,
            'lower_confidence': classification.lower_confidence,
            'upper_confidence': classification.upper_confidence,
            **classification.type_flags,
        }
        self.logger.info(f"Saving pole {image_uri} with status {classification.status.value}")

        response = self.api.post('/api/poles', json=record)
        self.api.raise_for_status(response, 'save pole')
        saved = PoleRecord.model_validate(response.json())
        self.logger.info(f"Pole saved to database at {saved.created_at.isoformat()}")
        return saved

    def list_poles(self, limit=20, offset=0, sort_by=SortOrder.RECENT, user_location=None, status_filter=None):
        """Fetch one page of this device's poles.

        ``status_filter`` of None and ``[]`` both mean no filter: an empty
        selection returns every record, not none.

        For ``nearest`` the server returns the newest-first page and only that
        page is reordered by distance to ``user_location``, so ordering is not
        global across pages. Without a location the newest-first order is kept.

        A page shorter than ``limit`` means the end of the data.
        """
        sort_by = SortOrder(sort_by)
        params = {
            'taker_id': self.taker_id,
            'order': SortOrder.OLDEST.value if sort_by == SortOrder.OLDEST else SortOrder.RECENT.value,
            'limit': limit,
            'offset': offset,
        }
        if status_filter:
            params['status'] = [PoleStatus(status).value for status in status_filter]

        self.logger.info(
            f"Fetching poles for device {self.taker_id}, limit: {limit}, offset: {offset}, "
            f"sortBy: {sort_by.value}, statusFilter: {params.get('status')}"
        )
        response = self.api.get('/api/poles', params=params)
        self.api.raise_for_status(response, 'fetch poles')
        poles = [PoleRecord.model_validate(item) for item in response.json()]

        if sort_by == SortOrder.NEAREST and user_location is not None:
            poles = rank_by_distance(poles, user_location)

        self.logger.info(f"Fetched {len(poles)} poles from database")
        return poles

    def _delete(self, **identity):
        try:
            response = self.api.delete('/api/poles', params={'taker_id': self.taker_id, **identity})
            self.api.raise_for_status(response, 'delete pole')
            result = OperationResult.from_count(response.json().get('deleted', 0))
        except (PoleCaptureError, ValueError) as e:
            self.logger.error(f"Error deleting pole {identity}: {e}")
            return OperationResult.failed(e)

        if result.status == OperationStatus.NOT_FOUND:
            self.logger.warning(f"Delete matched no pole for {identity}")
        else:
            self.logger.info(f"Pole deleted from database: {identity}")
        return result

    def delete_pole_by_created_at(self, created_at):
        """Delete this device's pole captured at ``created_at``."""
        if hasattr(created_at, 'isoformat'):
            created_at = created_at.isoformat()
        return self._delete(created_at=created_at)

    def delete_pole_by_image_uri(self, image_uri):
        """Delete this device's pole whose image lives at ``image_uri``."""
        return self._delete(image_uri=image_uri)

    # Profile operations
    def fetch_or_create_profile(self):
        """Return this device's profile, creating one with a random name if absent.

        Lookup and insert are two separate calls, so two first launches racing
        on the same device can both try to insert; the loser gets a 409 and
        this method raises NetworkError.
        """
        self.logger.info(f"Fetching user data for device: {self.taker_id}")
        response = self.api.get(f'/api/users/{self.taker_id}')
        if response.status_code != 404:
            self.api.raise_for_status(response, 'fetch user data')
            return UserProfile.model_validate(response.json())

        self.logger.info("No user data found, creating new user...")
        new_profile = {
            'taker_id': self.taker_id,
            'taker_name': generate_random_username(),
            'profile_pic_url': None,
        }
        response = self.api.post('/api/users', json=new_profile)
        self.api.raise_for_status(response, 'create user data')
        profile = UserProfile.model_validate(response.json())
        self.logger.info(f"User data created: {profile.taker_name}")
        return profile

    def _update_profile(self, values, description):
        try:
            response = self.api.patch(f'/api/users/{self.taker_id}', json=values)
            self.api.raise_for_status(response, f'update {description}')
            result = OperationResult.from_count(response.json().get('updated', 0))
        except (PoleCaptureError, ValueError) as e:
            self.logger.error(f"Error updating {description}: {e}")
            return OperationResult.failed(e)

        self.logger.info(f"Updated {description} for device {self.taker_id}: {result.status.value}")
        return result

    def update_username(self, name):
        return self._update_profile({'taker_name': name}, 'username')

    def update_profile_picture(self, url):
        return self._update_profile({'profile_pic_url': url}, 'profile picture')
