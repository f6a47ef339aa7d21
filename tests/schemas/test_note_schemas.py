"""Note Schemas — boundary validation for create/consume payloads.

Tests:
    - ciphertext must be non-empty valid base64 within the length bound
    - secret confirmation must match when supplied
    - expiry accepts short codes and web form spellings
    - payload property decodes the base64 body
"""

import base64

import pytest
from pydantic import ValidationError

from privnote.core.domain_types import ExpiryOption
from privnote.schemas.note import (
    MAX_CIPHERTEXT_CHARS, NoteConsume, NoteCreate, encode_b64,
)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def test_minimal_create_defaults_to_single_read():
    body = NoteCreate(ciphertext=_b64(b"hello"))
    assert body.expiry == ExpiryOption.NONE
    assert body.secret is None
    assert body.payload == b"hello"


def test_empty_ciphertext_rejected():
    with pytest.raises(ValidationError):
        NoteCreate(ciphertext="")


def test_invalid_base64_rejected():
    with pytest.raises(ValidationError):
        NoteCreate(ciphertext="not base64!!")


def test_ciphertext_length_bounded_before_decoding():
    NoteCreate(ciphertext="A" * MAX_CIPHERTEXT_CHARS)
    with pytest.raises(ValidationError) as exc_info:
        NoteCreate(ciphertext="A" * (MAX_CIPHERTEXT_CHARS + 4))
    assert exc_info.value.errors()[0]["type"] == "string_too_long"


def test_length_bound_covers_default_payload_cap():
    assert MAX_CIPHERTEXT_CHARS == len(_b64(b"x" * 100_000))


def test_empty_secret_rejected():
    with pytest.raises(ValidationError):
        NoteCreate(ciphertext=_b64(b"x"), secret="")


def test_mismatched_confirmation_rejected():
    with pytest.raises(ValidationError, match="Secrets do not match"):
        NoteCreate(ciphertext=_b64(b"x"), secret="pw1", secret_confirmation="pw2")


def test_matching_confirmation_accepted():
    body = NoteCreate(ciphertext=_b64(b"x"), secret="pw1", secret_confirmation="pw1")
    assert body.secret == "pw1"


def test_confirmation_without_secret_rejected():
    with pytest.raises(ValidationError):
        NoteCreate(ciphertext=_b64(b"x"), secret_confirmation="pw1")


@pytest.mark.parametrize("raw, option", [
    ("24h", ExpiryOption.ONE_DAY),
    ("24_hours", ExpiryOption.ONE_DAY),
    ("after_reading", ExpiryOption.NONE),
    ("30d", ExpiryOption.THIRTY_DAYS),
])
def test_expiry_spellings(raw, option):
    assert NoteCreate(ciphertext=_b64(b"x"), expiry=raw).expiry == option


def test_unknown_expiry_rejected():
    with pytest.raises(ValidationError):
        NoteCreate(ciphertext=_b64(b"x"), expiry="forever")


def test_consume_secret_optional():
    assert NoteConsume().secret is None
    assert NoteConsume(secret="pw1").secret == "pw1"


def test_encode_b64_round_trips_binary():
    data = bytes(range(256))
    assert base64.b64decode(encode_b64(data)) == data
