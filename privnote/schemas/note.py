"""Note Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - Payloads travel as standard base64 strings; the service never interprets them
    - NoteCreate.ciphertext is bounded before decoding (MAX_CIPHERTEXT_CHARS)
    - NoteCreate.secret, when present, is 1-200 chars and matches secret_confirmation
      if a confirmation is supplied
    - No response schema has a field for the secret or its hash

Design Decisions:
    - expiry accepts both the short codes (1h, 24h, ...) and the web form spellings
      (1_hour, 24_hours, ...) via ExpiryOption aliases
"""

import base64
import binascii
import math
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from privnote.config import get_settings
from privnote.core.domain_types import DestroyedReason, Discipline, ExpiryOption

# Longest base64 text that can decode to max_ciphertext_bytes
MAX_CIPHERTEXT_CHARS = 4 * math.ceil(get_settings().max_ciphertext_bytes / 3)


def _decode_b64(v: str) -> bytes:
    try:
        return base64.b64decode(v, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("ciphertext must be valid base64")


def encode_b64(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


class NoteCreate(BaseModel):
    """Note creation — base64 payload, optional secret, expiry policy."""
    ciphertext: str = Field(min_length=1, max_length=MAX_CIPHERTEXT_CHARS)
    secret: str | None = Field(None, min_length=1, max_length=200)
    secret_confirmation: str | None = Field(None, max_length=200)
    expiry: ExpiryOption = ExpiryOption.NONE

    @field_validator("ciphertext")
    @classmethod
    def check_base64(cls, v: str) -> str:
        if not _decode_b64(v):
            raise ValueError("ciphertext cannot be empty")
        return v

    @field_validator("expiry", mode="before")
    @classmethod
    def accept_aliases(cls, v):
        if isinstance(v, str):
            return ExpiryOption(v)
        return v

    @model_validator(mode="after")
    def check_confirmation(self):
        if self.secret_confirmation is not None and self.secret_confirmation != self.secret:
            raise ValueError("Secrets do not match")
        return self

    @property
    def payload(self) -> bytes:
        return _decode_b64(self.ciphertext)


class NoteCreated(BaseModel):
    id: UUID
    expires_at: datetime | None
    discipline: Discipline
    notice: str


class NoteMetadata(BaseModel):
    """Peek response — enough to render the warning and password prompt."""
    requires_secret: bool
    expires_at: datetime | None
    expires_in_seconds: int | None
    time_left: str | None


class NoteConsume(BaseModel):
    secret: str | None = Field(None, max_length=200)


class NoteContent(BaseModel):
    """Consume response — payload plus what happened to the note."""
    ciphertext: str
    expires_at: datetime | None
    destroyed: bool
    reason: DestroyedReason | None
