import enum


class PoleStatus(str, enum.Enum):
    """Pole condition labels.

    Stored both as the ``status`` column and as one of five mutually
    exclusive boolean flag columns (``normal_pole`` ... ``vegetation_pole``).
    """
    NORMAL = "Normal"
    LEANING = "Leaning"
    CRACKED = "Cracked"
    WARPED = "Warped"
    VEGETATION = "Vegetation"

    @property
    def flag_column(self):
        """Name of the boolean column that mirrors this status."""
        return f"{self.name.lower()}_pole"


class SortOrder(str, enum.Enum):
    """Sort options for the captured poles list."""
    RECENT = "recent"
    OLDEST = "oldest"
    NEAREST = "nearest"


POLE_TYPE_FLAGS = tuple(status.flag_column for status in PoleStatus)


def status_flags(status):
    """Return the five boolean type flags for ``status``, exactly one set."""
    status = PoleStatus(status)
    return {column: column == status.flag_column for column in POLE_TYPE_FLAGS}


def status_from_flags(flags):
    """Recover the status from a mapping of type flags.

    Raises:
        ValueError: If not exactly one flag is set.
    """
    selected = [status for status in PoleStatus if flags.get(status.flag_column)]
    if len(selected) != 1:
        raise ValueError(f"Exactly one pole type flag must be set, got {len(selected)}")
    return selected[0]
