"""
Data models for the remote user API.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _lower_keys(value: Any) -> Any:
    # Field names are matched case-insensitively
    if isinstance(value, dict):
        return {str(key).lower(): item for key, item in value.items()}
    return value


class ApiModel(BaseModel):
    """Base for wire models: immutable, tolerant of unknown fields."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _normalize_field_names(cls, data: Any) -> Any:
        return _lower_keys(data)


class User(ApiModel):
    """A user record."""

    id: int
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    avatar: str = ""

    @field_validator("email", "first_name", "last_name", "avatar", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Support(ApiModel):
    """Support metadata attached to API envelopes."""

    url: str = ""
    text: str = ""

    @field_validator("url", "text", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ApiResponse(ApiModel):
    """Single-item envelope."""

    data: Optional[User] = None
    support: Optional[Support] = None


class UserListResponse(ApiModel):
    """Paginated list envelope."""

    page: int = 0
    per_page: int = 0
    total: int = 0
    total_pages: int = 0
    data: List[User] = Field(default_factory=list)
    support: Optional[Support] = None

    @field_validator("data", mode="before")
    @classmethod
    def _null_as_empty_page(cls, value: Any) -> Any:
        # A page without data is an empty page
        return [] if value is None else value
