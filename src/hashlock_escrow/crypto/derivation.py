"""Program-derived address rules.

A derived address is ``sha256(seeds || bump || program_id || marker)`` and is
only valid when it is *not* a point on the ed25519 curve, so no private key
can ever sign for it. ``find_program_address`` walks the bump from 255 down
and returns the first valid candidate.
"""

from __future__ import annotations

import hashlib
from typing import Sequence

from ..config import MAX_SEED_LEN, MAX_SEEDS, PDA_MARKER, U8_MAX
from ..errors import ErrorCode, EscrowError

# Edwards25519 field prime and curve constant d = -121665/121666.
_P = 2**255 - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P


def is_on_curve(point: bytes) -> bool:
    """True when `point` decompresses to an ed25519 curve point."""
    y = (int.from_bytes(point, "little") & ((1 << 255) - 1)) % _P
    u = (y * y - 1) % _P
    v = (_D * y * y + 1) % _P
    x2 = u * pow(v, _P - 2, _P) % _P
    if x2 == 0:
        return True
    # Euler's criterion: x2 must be a quadratic residue for x to exist.
    return pow(x2, (_P - 1) // 2, _P) == 1


def create_program_address(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    if len(seeds) > MAX_SEEDS:
        raise EscrowError(ErrorCode.INVALID_FORMAT, "too many seeds")
    hasher = hashlib.sha256()
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise EscrowError(ErrorCode.INVALID_FORMAT, "seed too long")
        hasher.update(seed)
    hasher.update(program_id)
    hasher.update(PDA_MARKER)
    candidate = hasher.digest()
    if is_on_curve(candidate):
        raise EscrowError(ErrorCode.ADDRESS_MISMATCH, "derived address is on curve")
    return candidate


def find_program_address(seeds: Sequence[bytes], program_id: bytes) -> tuple[bytes, int]:
    for bump in range(U8_MAX, -1, -1):
        try:
            return create_program_address([*seeds, bytes([bump])], program_id), bump
        except EscrowError as exc:
            if exc.code != ErrorCode.ADDRESS_MISMATCH:
                raise
    raise EscrowError(ErrorCode.ADDRESS_MISMATCH, "no valid bump for seeds")


def deposit_seeds(depositor: bytes, deposit_id: int) -> list[bytes]:
    return [bytes(depositor), int(deposit_id).to_bytes(8, "little")]
