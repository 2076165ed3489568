"""Event document schema.

``EventDocument`` plays the role of the document mapper's schema: it fills
defaults on insert, coerces field types and drops keys the schema does not
know. Stored documents never carry ``_id``; the identifier lives beside
the document and is spliced back in by ``to_entity``.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ID_FIELD = "_id"


class Participant(BaseModel):
    model_config = ConfigDict(extra="allow")

    user: str
    joinedAt: datetime | None = None


class EventDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    info: str | None = None
    imageUrl: str | None = None
    location: str | None = None
    date: datetime | None = None
    active: bool = True
    host: str | None = None
    participants: list[Participant] = Field(default_factory=list)
    favoritesBy: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v


class UserProjection(BaseModel):
    """The slice of a User exposed when expanding a reference."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias=ID_FIELD)
    name: str | None = None
    imageUrl: str | None = None


def validate_document(data: Any) -> dict[str, Any]:
    """Validate raw fields against the schema and return the storable form.

    Raises:
        pydantic.ValidationError: If a field is missing or has the wrong type.
    """
    doc = EventDocument.model_validate(data)
    return doc.model_dump(mode="json", exclude_none=True)


def omit_identifier(payload: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``payload`` without a client-supplied identifier."""
    return {k: v for k, v in payload.items() if k != ID_FIELD}


def to_entity(event_id: str, doc: dict[str, Any]) -> dict[str, Any]:
    return {ID_FIELD: event_id, **omit_identifier(doc)}
