"""Note & Health Routes — HTTP contract tests through the ASGI app.

Tests cover:
    - POST /notes returns 201 with id, discipline and notice
    - GET /notes/{id} returns metadata without consuming
    - POST /notes/{id}/consume delivers base64 payload once
    - missing, consumed and malformed ids all render the same 404 body
    - wrong secret 403, invalid input 400 without echoing values
    - countdown text derived from the same instant as expires_in_seconds
    - health and readiness probes
"""

import base64
from uuid import uuid4

from privnote.schemas.note import MAX_CIPHERTEXT_CHARS


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


async def _create(client, payload=b"hello", **fields):
    response = await client.post(
        "/api/v1/notes", json={"ciphertext": _b64(payload), **fields},
    )
    assert response.status_code == 201
    return response.json()


def _error_shape(response):
    error = response.json()["error"]
    return error["code"], error["message"], error["category"], error["severity"]


# ─── Create ─────────────────────────────────────────────────────

async def test_create_single_read(client):
    body = await _create(client)
    assert body["discipline"] == "single_read"
    assert body["expires_at"] is None
    assert body["notice"] == "This note will self-destruct after being read once"
    assert "secret" not in body


async def test_create_windowed_with_alias(client):
    body = await _create(client, expiry="24_hours")
    assert body["discipline"] == "windowed"
    assert body["expires_at"] is not None
    assert "24 hours" in body["notice"]


async def test_create_invalid_base64(client):
    response = await client.post(
        "/api/v1/notes", json={"ciphertext": "not base64!!", "secret": "hunter2"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert "hunter2" not in response.text


async def test_create_secret_mismatch(client):
    response = await client.post(
        "/api/v1/notes",
        json={
            "ciphertext": _b64(b"x"),
            "secret": "pw1",
            "secret_confirmation": "pw2",
        },
    )
    assert response.status_code == 400
    assert "pw1" not in response.text


async def test_create_unknown_expiry(client):
    response = await client.post(
        "/api/v1/notes", json={"ciphertext": _b64(b"x"), "expiry": "fortnight"},
    )
    assert response.status_code == 400


async def test_create_oversized_payload(client):
    response = await client.post(
        "/api/v1/notes", json={"ciphertext": _b64(b"x" * 100_001)},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_rejects_overlong_text_before_decoding(client):
    response = await client.post(
        "/api/v1/notes", json={"ciphertext": "A" * (MAX_CIPHERTEXT_CHARS + 4)},
    )
    assert response.status_code == 400
    details = response.json()["error"]["details"]
    assert details[0]["type"] == "string_too_long"


# ─── Peek / Consume ─────────────────────────────────────────────

async def test_peek_then_consume_once(client):
    payload = b"\x00binary\xff"
    note_id = (await _create(client, payload, secret="pw1"))["id"]

    peek = await client.get(f"/api/v1/notes/{note_id}")
    assert peek.status_code == 200
    assert peek.json() == {
        "requires_secret": True,
        "expires_at": None,
        "expires_in_seconds": None,
        "time_left": None,
    }

    consumed = await client.post(
        f"/api/v1/notes/{note_id}/consume", json={"secret": "pw1"},
    )
    assert consumed.status_code == 200
    body = consumed.json()
    assert base64.b64decode(body["ciphertext"]) == payload
    assert body["destroyed"] is True
    assert body["reason"] == "read"

    again = await client.post(
        f"/api/v1/notes/{note_id}/consume", json={"secret": "pw1"},
    )
    assert again.status_code == 404


async def test_consume_without_body(client):
    note_id = (await _create(client))["id"]
    response = await client.post(f"/api/v1/notes/{note_id}/consume")
    assert response.status_code == 200
    assert base64.b64decode(response.json()["ciphertext"]) == b"hello"


async def test_wrong_secret_forbidden_and_note_survives(client):
    note_id = (await _create(client, secret="pw1"))["id"]

    wrong = await client.post(
        f"/api/v1/notes/{note_id}/consume", json={"secret": "wrong"},
    )
    assert wrong.status_code == 403
    assert wrong.json()["error"]["code"] == "INVALID_SECRET"

    right = await client.post(
        f"/api/v1/notes/{note_id}/consume", json={"secret": "pw1"},
    )
    assert right.status_code == 200


async def test_windowed_peek_and_repeat_reads(client, clock):
    note_id = (await _create(client, expiry="1h"))["id"]
    clock.advance(minutes=15)

    peek = (await client.get(f"/api/v1/notes/{note_id}")).json()
    assert peek["expires_in_seconds"] == 45 * 60
    assert peek["time_left"] == "45 minutes"

    for _ in range(2):
        response = await client.post(f"/api/v1/notes/{note_id}/consume")
        assert response.status_code == 200
        assert response.json()["destroyed"] is False

    clock.advance(hours=1)
    response = await client.post(f"/api/v1/notes/{note_id}/consume")
    assert response.status_code == 404


async def test_time_left_agrees_with_expires_in(client, note_engine, clock):
    note_id = (await _create(client, expiry="1h"))["id"]

    def ticking():
        return clock.advance(minutes=10)

    note_engine.clock = ticking
    peek = (await client.get(f"/api/v1/notes/{note_id}")).json()

    assert peek["expires_in_seconds"] == 50 * 60
    assert peek["time_left"] == "50 minutes"


async def test_gone_notes_are_indistinguishable(client, clock):
    consumed_id = (await _create(client))["id"]
    await client.post(f"/api/v1/notes/{consumed_id}/consume")
    expired_id = (await _create(client, expiry="1h"))["id"]
    clock.advance(hours=2)

    responses = [
        await client.post(f"/api/v1/notes/{consumed_id}/consume"),
        await client.post(f"/api/v1/notes/{expired_id}/consume"),
        await client.post(f"/api/v1/notes/{uuid4()}/consume"),
        await client.post("/api/v1/notes/not-a-uuid/consume"),
        await client.get(f"/api/v1/notes/{consumed_id}"),
        await client.get("/api/v1/notes/not-a-uuid"),
    ]

    assert {r.status_code for r in responses} == {404}
    assert len({_error_shape(r) for r in responses}) == 1
    assert _error_shape(responses[0])[0] == "NOTE_NOT_FOUND"


# ─── Health ─────────────────────────────────────────────────────

async def test_health(client):
    response = await client.get("/api/v1/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_readiness(client):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "healthy"
