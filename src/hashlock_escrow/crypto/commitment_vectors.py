"""Commitment test vectors.

The corpus deliberately includes secrets that differ only in case, whitespace
or Unicode normalization: each must yield a distinct commitment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .commitment import commitment_hash, secret_bytes

CORPUS: List[tuple[str, str, Optional[str]]] = [
    ("empty_string", "", "Empty secret is hashable but never generated by clients"),
    ("swordfish", "swordfish", None),
    ("swordfish_capitalized", "Swordfish", "Case is significant"),
    ("swordfish_upper", "SWORDFISH", None),
    ("swordfish_trailing_newline", "swordfish\n", "Trailing newline is significant"),
    ("swordfish_leading_space", " swordfish", "Leading whitespace is significant"),
    ("swordfish_trailing_space", "swordfish ", None),
    ("cafe_nfc", "caf\u00e9", "Precomposed e-acute"),
    ("cafe_nfd", "cafe\u0301", "Decomposed e + combining acute; not normalized"),
    ("alnum_code", "A7K2M9QX", "Shape of a generated claim code"),
    ("long_secret", "x" * 200, None),
]


@dataclass
class CommitmentVector:
    name: str
    description: Optional[str]
    secret: str
    secret_hex: str
    secret_length: int
    commitment_hex: str


def commitment_vectors() -> Dict[str, Any]:
    vectors: List[CommitmentVector] = []
    for name, secret, description in CORPUS:
        raw = secret_bytes(secret)
        vectors.append(
            CommitmentVector(
                name=name,
                description=description,
                secret=secret,
                secret_hex=raw.hex(),
                secret_length=len(raw),
                commitment_hex=commitment_hash(secret).hex(),
            )
        )
    return {
        "algorithm": "SHA256",
        "encoding": "UTF-8, no normalization",
        "output_size": 32,
        "test_vectors": [v.__dict__ for v in vectors],
    }
