"""OpenAPI to typed Python client generator package."""

from __future__ import annotations

from .cli import main
from .extractor import load_spec
from .generator import GenerationRun, generate_client, run_generation
from .model_types import GeneratorOptions, ParsedSpec

__all__ = [
    "GenerationRun",
    "GeneratorOptions",
    "ParsedSpec",
    "generate_client",
    "load_spec",
    "main",
    "run_generation",
]
