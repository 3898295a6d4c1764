"""Filesystem writer for generated client modules."""

from __future__ import annotations

import logging
from pathlib import Path
import subprocess
import sys

logger = logging.getLogger(__name__)

# Generated names follow the wire names. Colliding method names and references
# to schemas missing from the document are kept as they are.
_GENERATED_RUFF_IGNORE_CODES: tuple[str, ...] = (
    "D100",
    "D101",
    "D102",
    "D103",
    "E501",
    "E741",
    "F811",
    "F821",
    "N802",
    "N803",
    "N815",
)


class WriteError(RuntimeError):
    """Raised when output files cannot be written."""


def write_client_module(output_path: Path, source: str) -> None:
    """Write generated source, creating parent directories as needed.

    Args:
        output_path (Path): Target module path; an existing file is replaced.
        source (str): Generated Python source.
    """
    parent = output_path.parent
    if not parent.exists():
        logger.info("Creating output directory %s", parent)
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteError(f"Failed to create output directory {parent}: {exc}") from exc

    try:
        output_path.write_text(source, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Failed to write file {output_path}: {exc}") from exc
    logger.info("Wrote %s", output_path)


def format_generated_file(output_path: Path) -> None:
    """Run Ruff auto-fixes and formatter against a generated module.

    Args:
        output_path (Path): Generated module to format.
    """
    _run_ruff(output_path=output_path, args=("format", str(output_path)))
    _run_ruff(
        output_path=output_path,
        args=(
            "check",
            "--fix",
            "--ignore",
            ",".join(_GENERATED_RUFF_IGNORE_CODES),
            str(output_path),
        ),
    )
    _run_ruff(output_path=output_path, args=("format", str(output_path)))


def _run_ruff(*, output_path: Path, args: tuple[str, ...]) -> None:
    command = [sys.executable, "-m", "ruff", *args]
    command_desc = " ".join(args)
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute ruff {command_desc} for {output_path}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"ruff {command_desc} failed for {output_path}: {error_text}") from exc
