from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Boolean, Text, DateTime, Index, Enum, CheckConstraint
from sqlalchemy.orm import declarative_base
from shared.enums import PoleStatus

Base = declarative_base()


def now():
    """Return the current time as a naive UTC datetime.

    Timestamps are stored naive (SQLite drops tzinfo) and always mean UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage_datetime(value):
    """Normalize a datetime or ISO-8601 string to the naive UTC form used in storage."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class PoleCapture(Base):
    __tablename__ = 'poles_captured'
    # Surrogate key for the ORM only, never exposed to clients
    id = Column(Integer, primary_key=True, nullable=False)
    taker_id = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=now)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    image_uri = Column(Text, nullable=False)
    status = Column(
        Enum(PoleStatus, name='pole_status', values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False
    )
    lower_confidence = Column(Float, nullable=False, default=0.0, server_default="0")
    upper_confidence = Column(Float, nullable=False, default=0.0, server_default="0")
    normal_pole = Column(Boolean, nullable=False, default=False)
    leaning_pole = Column(Boolean, nullable=False, default=False)
    cracked_pole = Column(Boolean, nullable=False, default=False)
    warped_pole = Column(Boolean, nullable=False, default=False)
    vegetation_pole = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint('latitude IS NULL OR (latitude >= -90.0 AND latitude <= 90.0)', name='chk_pole_latitude_range'),
        CheckConstraint('longitude IS NULL OR (longitude >= -180.0 AND longitude <= 180.0)', name='chk_pole_longitude_range'),
        CheckConstraint(
            'CAST(normal_pole AS INTEGER) + CAST(leaning_pole AS INTEGER) + CAST(cracked_pole AS INTEGER)'
            ' + CAST(warped_pole AS INTEGER) + CAST(vegetation_pole AS INTEGER) = 1',
            name='chk_pole_single_type_flag'
        ),
    )

Index('idx_pole_taker_created', PoleCapture.taker_id, PoleCapture.created_at)


class UserData(Base):
    __tablename__ = 'user_data'
    id = Column(Integer, primary_key=True, nullable=False)
    taker_id = Column(String(128), nullable=False, unique=True)
    taker_name = Column(String(80), nullable=False, server_default="")
    profile_pic_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)
