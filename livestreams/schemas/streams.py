import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from livestreams.enums.streams import Visibility

_url_adapter = TypeAdapter(AnyUrl)


def validate_hls_url(value: Optional[str]) -> Optional[str]:
    """Accept only absolute URLs but keep the caller's spelling of it."""
    if value is None:
        return None
    value = value.strip()
    try:
        _url_adapter.validate_python(value)
    except ValueError as e:
        raise ValueError("Must be a valid URL") from e
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StreamCreate(CamelModel):
    title: str = Field(..., min_length=3, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    visibility: Visibility = Visibility.PUBLIC
    hls_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("hls_url")
    @classmethod
    def check_hls_url(cls, v: Optional[str]) -> Optional[str]:
        return validate_hls_url(v)


class StreamUpdate(CamelModel):
    """
    Partial update. Only fields present in the payload are applied;
    ``description`` and ``hlsUrl`` may be explicitly cleared with null.
    """

    title: Optional[str] = Field(None, min_length=3, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    visibility: Optional[Visibility] = None
    slug: Optional[str] = Field(None, min_length=3, max_length=160)
    is_live: Optional[bool] = None
    hls_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("title", "visibility", "slug", "is_live", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        # validators only run for supplied values, so None here was sent explicitly
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("hls_url")
    @classmethod
    def check_hls_url(cls, v: Optional[str]) -> Optional[str]:
        return validate_hls_url(v)

    @model_validator(mode="after")
    def require_changes(self) -> "StreamUpdate":
        if not self.model_fields_set:
            raise ValueError("No fields provided for update")
        return self


class StreamOwner(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: uuid.UUID
    name: Optional[str] = None
    image: Optional[str] = None


class StreamRead(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: uuid.UUID
    slug: str
    title: str
    description: Optional[str] = None
    visibility: Visibility
    is_live: bool
    hls_url: Optional[str] = None
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class StreamWithOwner(StreamRead):
    """Stream as listed or viewed, with a public summary of its owner."""

    user: Optional[StreamOwner] = None


class StreamDeleted(BaseModel):
    success: bool = True
