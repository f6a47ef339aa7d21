"""Access Gate — salted hashing and verification of note secrets.

Tests:
    - Digest never equals the plaintext, salts are per-note
    - No stored secret grants access regardless of input
    - Stored secret denies missing or wrong secrets
    - equalize_timing is a no-op without a secret
"""

from privnote.core.access_gate import (
    DIGEST_BYTES, SALT_BYTES, equalize_timing, hash_secret, verify_secret,
)


def test_hash_secret_shape():
    digest = hash_secret("pw1")
    assert len(digest.hash) == DIGEST_BYTES
    assert len(digest.salt) == SALT_BYTES
    assert b"pw1" not in digest.hash


def test_same_secret_gets_fresh_salt():
    a = hash_secret("pw1")
    b = hash_secret("pw1")
    assert a.salt != b.salt
    assert a.hash != b.hash


def test_verify_correct_secret():
    digest = hash_secret("pw1")
    assert verify_secret(digest.hash, digest.salt, "pw1") is True


def test_verify_wrong_secret():
    digest = hash_secret("pw1")
    assert verify_secret(digest.hash, digest.salt, "wrong") is False


def test_verify_missing_secret_denied():
    digest = hash_secret("pw1")
    assert verify_secret(digest.hash, digest.salt, None) is False


def test_unprotected_note_always_granted():
    assert verify_secret(None, None, None) is True
    assert verify_secret(None, None, "anything") is True


def test_unicode_secret():
    digest = hash_secret("contraseña-✓")
    assert verify_secret(digest.hash, digest.salt, "contraseña-✓") is True
    assert verify_secret(digest.hash, digest.salt, "contrasena-✓") is False


def test_equalize_timing_returns_none():
    assert equalize_timing(None) is None
    assert equalize_timing("pw1") is None
