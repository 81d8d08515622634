"""Commitment hashing (SHA-256 of the raw secret bytes)."""

from __future__ import annotations

import hashlib
import hmac
from typing import Union

from ..config import HASH_SIZE
from ..errors import ErrorCode, EscrowError

Secret = Union[str, bytes]


def secret_bytes(secret: Secret) -> bytes:
    # No normalization: case, whitespace and trailing newlines are significant.
    if isinstance(secret, str):
        try:
            return secret.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EscrowError(ErrorCode.INVALID_FORMAT, "secret is not encodable as utf-8") from exc
    return bytes(secret)


def commitment_hash(secret: Secret) -> bytes:
    digest = hashlib.sha256(secret_bytes(secret)).digest()
    if len(digest) != HASH_SIZE:
        raise EscrowError(ErrorCode.INVALID_SECRET, "hash did not produce a 32-byte digest")
    return digest


def verify_secret(secret: Secret, commitment: bytes) -> bool:
    return hmac.compare_digest(commitment_hash(secret), bytes(commitment))
