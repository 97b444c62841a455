"""Input validation utilities."""
import re
import bleach
from shared.enums import PoleStatus, SortOrder
from shared.errors import ValidationError


class Validator:
    """Input validation utilities."""

    USERNAME_MAX_LENGTH = 80
    # Largest page the poles API serves; clients size their pages within it
    MAX_PAGE_SIZE = 100
    # Filenames become part of an object key; path separators would create folders
    FILENAME_PATTERN = re.compile(r'^[^/\\\x00-\x1f]+$')

    @staticmethod
    def validate_required(value, field_name):
        """Validate that a required field is not empty."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field_name} is required")
        return value

    @staticmethod
    def validate_string_length(value, field_name, min_length=0, max_length=None):
        """Validate string length constraints."""
        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string")

        value = value.strip()
        if len(value) < min_length:
            raise ValidationError(f"{field_name} must be at least {min_length} characters")

        if max_length and len(value) > max_length:
            raise ValidationError(f"{field_name} must be no more than {max_length} characters")

        return value

    @staticmethod
    def validate_coordinates(lat, lng):
        """Validate GPS coordinates and return them as floats."""
        try:
            lat_val = float(lat.strip() if isinstance(lat, str) else lat)
        except (ValueError, TypeError):
            raise ValidationError("Latitude must be a valid number")

        try:
            lng_val = float(lng.strip() if isinstance(lng, str) else lng)
        except (ValueError, TypeError):
            raise ValidationError("Longitude must be a valid number")

        if not (-90 <= lat_val <= 90):
            raise ValidationError("Latitude must be between -90 and 90")

        if not (-180 <= lng_val <= 180):
            raise ValidationError("Longitude must be between -180 and 180")

        return lat_val, lng_val

    @staticmethod
    def validate_choice(value, field_name, valid_choices):
        """Validate that value is in list of valid choices."""
        if value not in valid_choices:
            raise ValidationError(f"{field_name} must be one of: {', '.join(str(c) for c in valid_choices)}")
        return value

    @staticmethod
    def validate_statuses(values):
        """Validate a collection of status labels, returning PoleStatus members."""
        valid = [status.value for status in PoleStatus]
        return [PoleStatus(Validator.validate_choice(value, 'status', valid)) for value in values]

    @staticmethod
    def validate_sort_order(value, allowed=None):
        """Validate a sort option name."""
        allowed = allowed or [order.value for order in SortOrder]
        return SortOrder(Validator.validate_choice(value, 'order', allowed))

    @staticmethod
    def validate_page_size(value, field_name='limit'):
        """Validate a page size within 1..MAX_PAGE_SIZE."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{field_name} must be an integer")
        if not (1 <= value <= Validator.MAX_PAGE_SIZE):
            raise ValidationError(f"{field_name} must be between 1 and {Validator.MAX_PAGE_SIZE}")
        return value

    @staticmethod
    def validate_filename(filename):
        """Validate an upload filename: present and free of path separators."""
        filename = Validator.validate_required(filename, 'Filename')
        if not isinstance(filename, str) or not Validator.FILENAME_PATTERN.match(filename):
            raise ValidationError("Filename must not contain path separators or control characters")
        return filename

    @staticmethod
    def sanitize_html(text):
        """Strip every HTML tag from a short plain-text value.

        Plain text without markup is returned untouched so that ampersands in
        display names are not escaped.
        """
        if not text:
            return text

        if '<' not in text and '>' not in text:
            return text

        return bleach.clean(text, tags=[], attributes={}, strip=True)

    @staticmethod
    def validate_username(name):
        """Validate and clean a user-editable display name."""
        name = Validator.validate_required(name, 'Username')
        name = Validator.validate_string_length(name, 'Username', 1, Validator.USERNAME_MAX_LENGTH)
        name = Validator.sanitize_html(name).strip()
        if not name:
            raise ValidationError("Username is required")
        return name
