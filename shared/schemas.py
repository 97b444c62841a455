"""Pydantic schemas for validation and serialization."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from shared.enums import PoleStatus, POLE_TYPE_FLAGS, status_flags
from shared.validation import Validator

DEFAULT_CONTENT_TYPE = 'image/jpeg'


# Pole schemas
class PoleFields(BaseModel):
    taker_id: str = Field(..., min_length=1, max_length=128)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    image_uri: str = Field(..., min_length=1)
    status: PoleStatus
    lower_confidence: float = 0.0
    upper_confidence: float = 0.0
    normal_pole: bool = False
    leaning_pole: bool = False
    cracked_pole: bool = False
    warped_pole: bool = False
    vegetation_pole: bool = False

    def type_flags(self):
        return {column: getattr(self, column) for column in POLE_TYPE_FLAGS}


class PoleCreateRequest(PoleFields):
    """Body of ``POST /api/poles``. ``created_at`` is always assigned by the server."""

    model_config = ConfigDict(extra='ignore')

    @model_validator(mode='after')
    def validate_type_flags(self):
        if self.type_flags() != status_flags(self.status):
            raise ValueError(f"Exactly one pole type flag must be set and it must match status '{self.status.value}'")
        return self

    @model_validator(mode='after')
    def validate_confidence_interval(self):
        if self.lower_confidence > self.upper_confidence:
            raise ValueError("lower_confidence must not exceed upper_confidence")
        return self


class PoleRecord(PoleFields):
    """A pole capture as returned by the metadata API."""
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @property
    def has_location(self):
        """False for missing coordinates and for the 0/0 "unknown" sentinel."""
        if self.latitude is None or self.longitude is None:
            return False
        return not (self.latitude == 0 and self.longitude == 0)


# User profile schemas
class UserProfile(BaseModel):
    taker_id: str
    taker_name: str
    profile_pic_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserCreateRequest(BaseModel):
    taker_id: str = Field(..., min_length=1, max_length=128)
    taker_name: str
    profile_pic_url: Optional[str] = None

    @field_validator('taker_name')
    @classmethod
    def validate_taker_name(cls, v):
        return Validator.validate_username(v)


class UserUpdateRequest(BaseModel):
    taker_name: Optional[str] = None
    profile_pic_url: Optional[str] = None

    @field_validator('taker_name')
    @classmethod
    def validate_taker_name(cls, v):
        if v is not None:
            return Validator.validate_username(v)
        return v

    @model_validator(mode='after')
    def validate_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one of taker_name or profile_pic_url is required")
        return self


# Upload URL issuer schemas
class UploadUrlRequest(BaseModel):
    filename: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias='contentType')

    model_config = ConfigDict(populate_by_name=True)


class UploadUrlResponse(BaseModel):
    upload_url: str = Field(..., alias='uploadUrl')
    public_url: str = Field(..., alias='publicUrl')
    filename: str

    model_config = ConfigDict(populate_by_name=True)
