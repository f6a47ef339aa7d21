"""Access Gate — salted-hash storage and constant-time verification of note secrets.

Invariants:
    - Secrets are never stored: only scrypt(secret, per-note salt) and the salt
    - No stored hash => access granted; stored hash and no supplied secret => denied
    - Digest comparison is constant-time (hmac.compare_digest)
    - All functions are PURE apart from salt generation: no IO, no async

Design Decisions:
    - scrypt from `cryptography` over a fast hash: brute-forcing a leaked row costs memory
    - equalize_timing runs one throw-away derivation so the "no such note" path costs
      roughly what the "wrong secret" path costs (best effort, not a hard guarantee)
"""

import hmac
import os
from typing import NamedTuple

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

SALT_BYTES = 16
DIGEST_BYTES = 32
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1

_DUMMY_SALT = b"\x00" * SALT_BYTES


class SecretDigest(NamedTuple):
    """What the store persists for a protected note."""
    hash: bytes
    salt: bytes


def _derive(secret: str, salt: bytes) -> bytes:
    kdf = Scrypt(salt=salt, length=DIGEST_BYTES, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(secret.encode("utf-8"))


def hash_secret(secret: str) -> SecretDigest:
    """Hash a creator-supplied secret with a fresh random salt."""
    salt = os.urandom(SALT_BYTES)
    return SecretDigest(hash=_derive(secret, salt), salt=salt)


def verify_secret(
    stored_hash: bytes | None,
    stored_salt: bytes | None,
    supplied: str | None,
) -> bool:
    """Check a supplied secret against the stored digest."""
    if stored_hash is None:
        return True
    if supplied is None or stored_salt is None:
        return False
    return hmac.compare_digest(_derive(supplied, stored_salt), stored_hash)


def equalize_timing(supplied: str | None) -> None:
    """Spend one derivation on a path that has nothing to verify."""
    if supplied is not None:
        _derive(supplied, _DUMMY_SALT)
