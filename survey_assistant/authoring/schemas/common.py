# survey_assistant/authoring/schemas/common.py
"""Shared building blocks for the three authoring documents."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = "1.0"
LOCALE = "ja-JP"

FieldSource = Literal["user", "inferred", "empty"]
Priority = Literal["high", "medium", "low"]

PRIORITY_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_blank(value: object) -> bool:
    """True for None, whitespace-only strings and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


class WireModel(BaseModel):
    """Base for documents exchanged between stages.

    Wire form is camelCase; Python attribute names are accepted too.
    """

    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Meta(WireModel):
    """Provenance block carried by every document."""

    version: str = Field(default=SCHEMA_VERSION)
    locale: str = Field(default=LOCALE)
    generated_at: str = Field(default_factory=utc_now_iso)


class FieldValue(WireModel):
    """A single requirement value and where it came from.

    The value is empty exactly when source is "empty", and an empty field
    always has confidence 0.
    """

    value: str | list[str] | None = Field(default=None)
    source: FieldSource = Field(default="empty")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_source_consistency(self) -> "FieldValue":
        if self.source == "empty":
            if not is_blank(self.value):
                raise ValueError("value must be empty when source is 'empty'")
            if self.confidence != 0:
                raise ValueError("confidence must be 0 when source is 'empty'")
        elif is_blank(self.value):
            raise ValueError(f"value must not be empty when source is '{self.source}'")
        return self

    @property
    def is_empty(self) -> bool:
        return self.source == "empty"

    def as_text(self) -> str | None:
        """Value flattened to a single string, or None when empty."""
        if self.is_empty:
            return None
        if isinstance(self.value, list):
            return "、".join(self.value)
        return self.value

    @classmethod
    def empty(cls) -> "FieldValue":
        return cls()

    @classmethod
    def from_user(cls, value: str | list[str]) -> "FieldValue":
        return cls(value=value, source="user", confidence=1.0)

    @classmethod
    def inferred(cls, value: str | list[str], confidence: float) -> "FieldValue":
        return cls(value=value, source="inferred", confidence=confidence)
