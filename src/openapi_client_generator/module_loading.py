"""Temporary imports of generated client modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import importlib.util
import itertools
from pathlib import Path
import sys
from types import ModuleType

_MODULE_IDS = itertools.count(1)


@contextmanager
def imported_module(module_path: Path, *, name_prefix: str = "generated_client") -> Iterator[ModuleType]:
    """Import a generated module under a fresh name for the duration of a block.

    Generated models resolve forward references through ``sys.modules``, so
    the module is registered there until the block exits.

    Args:
        module_path (Path): File system path to the generated module.
        name_prefix (str): Prefix of the temporary import name.

    Yields:
        ModuleType: The executed module.
    """
    module_name = f"{name_prefix}_{next(_MODULE_IDS)}"
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Unable to import module from: {module_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
        yield module
    finally:
        sys.modules.pop(module_name, None)
