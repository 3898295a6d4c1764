"""Shared helpers for fixture-driven tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import ModuleType
from typing import ParamSpec, TypeVar

import pytest

from openapi_client_generator.generator import generate_client
from openapi_client_generator.model_types import GeneratorOptions, ParsedSpec
from openapi_client_generator.module_loading import imported_module

_FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures" / "openapi_specs"
_P = ParamSpec("_P")
_R = TypeVar("_R")


def fixture_dir() -> Path:
    """Return the OpenAPI fixtures directory."""
    return _FIXTURE_DIR


def fixture_path(name: str) -> Path:
    """Return the path of one named fixture document."""
    return _FIXTURE_DIR / name


def iter_fixture_paths() -> list[Path]:
    """Return all YAML fixture paths sorted by name."""
    paths = sorted(_FIXTURE_DIR.glob("*.yaml")) + sorted(_FIXTURE_DIR.glob("*.yml"))
    return [path for path in paths if path.is_file()]


def parametrize_fixtures() -> Callable[[Callable[_P, _R]], Callable[_P, _R]]:
    """Parametrize a test over all fixture paths."""

    def _decorator(func: Callable[_P, _R]) -> Callable[_P, _R]:
        decorator: Callable[[Callable[_P, _R]], Callable[_P, _R]]
        decorator = pytest.mark.parametrize(
            "fixture_path",
            iter_fixture_paths(),
            ids=lambda path: path.name,
        )
        return decorator(func)

    return _decorator


@contextmanager
def generated_module(
    spec: ParsedSpec,
    directory: Path,
    options: GeneratorOptions | None = None,
) -> Iterator[ModuleType]:
    """Generate, write and import a client module for the duration of a test."""
    module_path = directory / "generated_client.py"
    module_path.write_text(generate_client(spec, options), encoding="utf-8")
    with imported_module(module_path, name_prefix="generated_test_client") as module:
        yield module
