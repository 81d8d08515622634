#!/usr/bin/env python3
"""
Escrow fixture replayer.

Re-executes generated state-transition fixtures through the Python state
transition and reports every case whose outcome or post-state digest diverges.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from hashlock_escrow.state_digest import compute_state_digest  # noqa: E402
from hashlock_escrow.state_transition import process_transaction  # noqa: E402
from tools.fixtures_io import instruction_from_json, state_from_json, state_to_json  # noqa: E402

logger = logging.getLogger(__name__)


@dataclass
class ReplayConfig:
    """Replay settings."""
    fixture_dir: str = str(ROOT / "fixtures")
    stop_on_first_failure: bool = False
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "ReplayConfig":
        """Load configuration from environment variables."""
        config = cls()
        config.fixture_dir = os.environ.get("FIXTURE_DIR", config.fixture_dir)
        config.verbose = os.environ.get("VERBOSE", "").lower() in ("true", "1", "yes")
        config.stop_on_first_failure = os.environ.get(
            "STOP_ON_FIRST_FAILURE", ""
        ).lower() in ("true", "1", "yes")
        return config


@dataclass
class CaseResult:
    file: str
    name: str
    mismatches: List[str]

    @property
    def passed(self) -> bool:
        return not self.mismatches


def load_cases(path: Path) -> List[Dict[str, Any]]:
    text = path.read_text()
    if path.suffix in (".yaml", ".yml"):
        doc = yaml.safe_load(text)
    else:
        doc = json.loads(text)
    return list((doc or {}).get("cases", []))


def replay_case(case: Dict[str, Any]) -> List[str]:
    """Replay one fixture case; returns human-readable mismatches."""
    pre_state = state_from_json(case["pre_state"])
    instructions = [instruction_from_json(ix) for ix in case["instructions"]]
    post_state, result = process_transaction(pre_state, instructions)

    expected = case["expected"]
    mismatches = []
    if result.ok != expected["ok"]:
        mismatches.append(f"ok: expected {expected['ok']}, got {result.ok}")
    actual_error = result.error.code.name if result.error else None
    if actual_error != expected.get("error"):
        mismatches.append(f"error: expected {expected.get('error')}, got {actual_error}")
    if "return_value" in expected and result.return_value != expected["return_value"]:
        mismatches.append(
            f"return_value: expected {expected['return_value']}, got {result.return_value}"
        )

    digest = compute_state_digest(state_to_json(post_state))
    expected_digest = expected.get("state_digest")
    if expected_digest is None and "post_state" in expected:
        expected_digest = compute_state_digest(expected["post_state"])
    if expected_digest is not None and digest != expected_digest:
        mismatches.append(f"state_digest: expected {expected_digest}, got {digest}")
    return mismatches


def find_fixture_files(fixture_dir: str) -> List[Path]:
    root = Path(fixture_dir)
    patterns = ("*.json", "*.yaml", "*.yml")
    files = []
    for pattern in patterns:
        files.extend(p for p in root.rglob(pattern) if "crypto" not in p.parts)
    return sorted(files)


def run(files: List[Path], stop_on_failure: bool) -> List[CaseResult]:
    results: List[CaseResult] = []
    for path in files:
        logger.info("Replaying: %s", path)
        for case in load_cases(path):
            result = CaseResult(str(path), case.get("name", "unknown"), replay_case(case))
            results.append(result)
            status = "PASS" if result.passed else "FAIL"
            logger.info("  [%s] %s", status, result.name)
            for mismatch in result.mismatches:
                logger.debug("      %s", mismatch)
            if not result.passed and stop_on_failure:
                return results
    return results


@click.command()
@click.option(
    "--fixtures",
    default=None,
    help="Path to fixtures directory or a specific fixture file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--stop-on-failure",
    is_flag=True,
    help="Stop on first failing case",
)
def main(fixtures: Optional[str], verbose: bool, stop_on_failure: bool) -> None:
    """Replay escrow state-transition fixtures."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    config = ReplayConfig.from_env()
    if verbose:
        config.verbose = True
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if stop_on_failure:
        config.stop_on_first_failure = True

    target = fixtures or config.fixture_dir
    if os.path.isfile(target):
        files = [Path(target)]
    else:
        files = find_fixture_files(target)

    if not files:
        logger.error("No fixture files found in %s", target)
        sys.exit(1)

    logger.info("Found %d fixture files", len(files))
    results = run(files, config.stop_on_first_failure)
    failed = [r for r in results if not r.passed]
    click.echo(f"{len(results) - len(failed)}/{len(results)} cases passed")
    for r in failed:
        click.echo(f"FAIL {r.file}::{r.name}")
        for mismatch in r.mismatches:
            click.echo(f"    {mismatch}")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
