"""Generate commitment and deposit-address YAML vectors from the Python specs."""

from __future__ import annotations

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from hashlock_escrow.config import PROGRAM_ID  # noqa: E402
from hashlock_escrow.crypto.commitment_vectors import commitment_vectors  # noqa: E402
from hashlock_escrow.escrow import find_deposit_address  # noqa: E402
from hashlock_escrow.test_accounts import ALICE, BOB  # noqa: E402
from tools.yaml_dump import write_yaml  # noqa: E402


def _prune(obj):  # drop None values so optional vector fields are omitted
    if isinstance(obj, dict):
        return {k: _prune(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, list):
        return [_prune(v) for v in obj]
    return obj


def deposit_address_vectors() -> dict:
    vectors = []
    for name, depositor in (("alice", ALICE), ("bob", BOB)):
        for deposit_id in (0, 1, 1_700_000_000_000):
            address, bump = find_deposit_address(depositor, deposit_id)
            vectors.append(
                {
                    "name": f"{name}_{deposit_id}",
                    "depositor_hex": depositor.hex(),
                    "deposit_id": deposit_id,
                    "address_hex": address.hex(),
                    "bump": bump,
                }
            )
    return {"program_id_hex": PROGRAM_ID.hex(), "seed": "deposit", "test_vectors": vectors}


def write_vectors(out: Path) -> list[Path]:
    out.mkdir(parents=True, exist_ok=True)
    written = [out / "commitment_sha256.yaml", out / "deposit_address.yaml"]
    write_yaml(written[0], _prune(commitment_vectors()))
    write_yaml(written[1], _prune(deposit_address_vectors()))
    return written


def main() -> None:
    write_vectors(ROOT / "fixtures" / "crypto")


if __name__ == "__main__":
    main()
