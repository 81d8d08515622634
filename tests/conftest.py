"""Pytest hooks to generate escrow fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from hashlock_escrow.encoding import encode_instruction_data
from hashlock_escrow.errors import EscrowError
from hashlock_escrow.state_digest import compute_state_digest
from hashlock_escrow.state_transition import TransitionResult, process_transaction
from hashlock_escrow.types import Instruction, LedgerState
from tools.fixtures_io import instruction_to_json, state_to_json


def _try_wire_hex(ix: Instruction) -> str:
    """Instruction data as hex, or empty string for unencodable negative cases."""
    try:
        return encode_instruction_data(ix).hex()
    except (EscrowError, AttributeError, TypeError):
        return ""


_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_VECTOR_CASES: dict[str, list[dict[str, Any]]] = {}


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


@pytest.fixture
def state_test_group() -> Callable[..., tuple[LedgerState, TransitionResult]]:
    """Run instructions as one transaction, record the case, return the outcome."""

    def _state_test_group(
        rel_path: str,
        name: str,
        pre_state: LedgerState,
        instructions: Instruction | list[Instruction],
    ) -> tuple[LedgerState, TransitionResult]:
        if isinstance(instructions, Instruction):
            instructions = [instructions]
        pre_json = state_to_json(pre_state)
        post_state, result = process_transaction(pre_state, instructions)
        post_json = state_to_json(post_state)
        ix_json = []
        for ix in instructions:
            entry = instruction_to_json(ix)
            entry["data_hex"] = _try_wire_hex(ix)
            ix_json.append(entry)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": pre_json,
                "instructions": ix_json,
                "expected": {
                    "ok": result.ok,
                    "error": result.error.code.name if result.error else None,
                    "return_value": result.return_value,
                    "post_state": post_json,
                    "state_digest": compute_state_digest(post_json),
                },
            }
        )
        return post_state, result

    return _state_test_group


@pytest.fixture
def vector_test_group() -> Callable[[str, dict[str, Any]], None]:
    """Collect pre-built test_vectors under a specific fixture path."""

    def _vector_test_group(rel_path: str, vector: dict[str, Any]) -> None:
        _VECTOR_CASES.setdefault(rel_path, []).append(vector)

    return _vector_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))

    for rel_path, vectors in _VECTOR_CASES.items():
        if not vectors:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"test_vectors": vectors}, indent=2))
