"""Command line interface for OpenAPI client generation."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .generator import GenerationRun, SpecLoadError, WriteError, run_generation
from .loader import is_url
from .model_types import GeneratorOptions
from .verify import VerificationError, format_report
from .watch import watch_file


class CLIError(RuntimeError):
    """Raised when CLI execution fails."""


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    defaults = GeneratorOptions()
    parser = argparse.ArgumentParser(
        prog="openapi-client-generator",
        description="Generate a typed async Python API client from an OpenAPI document",
    )
    parser.add_argument(
        "--input", "-i", required=True, help="Path or URL of an OpenAPI YAML/JSON document"
    )
    parser.add_argument(
        "--output", "-o", required=True, help="Output file path for the generated client module"
    )
    parser.add_argument(
        "--class-name",
        "-c",
        default=defaults.class_name,
        help="Name of the generated client class",
    )
    parser.add_argument(
        "--module-name",
        "-n",
        default=defaults.module_name,
        help="Module name recorded in the generated module docstring",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Import the generated module and check it against the document",
    )
    parser.add_argument(
        "--watch",
        "-w",
        action="store_true",
        help="Watch the input file for changes and regenerate automatically",
    )
    parser.add_argument(
        "--skip-format",
        action="store_true",
        help="Do not run ruff over the generated module",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress details")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    options = GeneratorOptions(class_name=args.class_name, module_name=args.module_name)
    output_path = Path(args.output)

    def _generate() -> int:
        run = run_generation(
            source=args.input,
            output_path=output_path,
            options=options,
            verify=bool(args.verify),
            format_output=not args.skip_format,
        )
        return _report(run)

    try:
        if args.watch and is_url(args.input):
            raise CLIError("--watch requires a local input file")
        exit_code = _generate()
    except (SpecLoadError, WriteError, VerificationError, CLIError) as exc:
        parser.error(str(exc))
        return 2

    if not args.watch:
        return exit_code

    print(f"Watching {args.input} for changes (Ctrl+C to stop)...")

    def _regenerate() -> None:
        try:
            _generate()
        except (SpecLoadError, WriteError, VerificationError) as exc:
            print(f"Error: {exc}")

    try:
        watch_file(Path(args.input), _regenerate)
    except KeyboardInterrupt:
        print("Stopped watching.")
    return exit_code


def _report(run: GenerationRun) -> int:
    result = run.result
    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(
        f"Generated {result.output_path} "
        f"({result.model_count} models, {result.method_count} methods)"
    )

    if run.verification_report is not None:
        print(format_report(run.verification_report))
        if run.verification_report.mismatch_count > 0:
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
