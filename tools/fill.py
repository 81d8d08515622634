"""Fill escrow fixtures.

Runs the escrow test-suite with ``--output`` so every ``state_test_group`` case
lands as JSON under the output directory, then writes the commitment and
deposit-address YAML vectors under ``<output>/crypto``. The result is what
``tools/replay.py`` consumes.

Usage::

    python tools/fill.py
    python tools/fill.py --output /tmp/escrow-fixtures -k claim
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

import click

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from tools.gen_commitment_vectors import write_vectors  # noqa: E402


def pytest_command(output: Path, keyword: Optional[str] = None) -> list[str]:
    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(ROOT / "tests"),
        "-q",
        "--output",
        str(output),
    ]
    if keyword:
        cmd += ["-k", keyword]
    return cmd


@click.command()
@click.option(
    "--output",
    default=str(ROOT / "fixtures"),
    show_default=True,
    help="Directory to write escrow fixtures into",
)
@click.option(
    "-k",
    "keyword",
    default=None,
    help="Only fill cases whose test names match this pytest -k expression",
)
def main(output: str, keyword: Optional[str]) -> None:
    """Generate escrow state-transition fixtures and crypto vectors."""
    out = Path(output)
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = pytest_command(out, keyword)
    click.echo("Running: " + " ".join(cmd))
    code = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if code != 0:
        sys.exit(code)

    for path in write_vectors(out / "crypto"):
        click.echo(f"Wrote {path}")


if __name__ == "__main__":
    main()
