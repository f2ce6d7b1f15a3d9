from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime

from slinker.core.link_rules import is_valid_url, normalize_url
from slinker.services.link_store import ShortenedLink


class CreateLinkRequest(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def url_must_be_absolute(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("URL is required")
        if not is_valid_url(v):
            raise ValueError("Invalid URL format")
        return normalize_url(v)


class DeleteLinkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    short_code: str = Field(alias="shortCode", min_length=1, max_length=32)

    @field_validator("short_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("shortCode is required")
        return v


class LinkResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    original_url: str
    short_code: str
    created_at: datetime
    clicks: int

    @classmethod
    def from_link(cls, link: ShortenedLink) -> "LinkResponse":
        return cls(
            id=str(link.id),
            original_url=link.original_url,
            short_code=link.short_code,
            created_at=link.created_at,
            clicks=link.clicks,
        )


class DeleteLinkResponse(BaseModel):
    success: bool = True
