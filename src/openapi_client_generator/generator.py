"""High-level generator orchestration."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional

from .codegen_ast import MODULE_IMPORTS, render_client_module
from .extractor import load_spec
from .loader import SpecLoadError
from .model_types import (
    ArraySchema,
    GenerationResult,
    GeneratorOptions,
    ObjectSchema,
    OperationPlan,
    ParsedSpec,
    ReferenceSchema,
    SchemaNode,
)
from .planner import EndpointPlanner
from .resolver import SchemaTypeResolver
from .schema_to_models import ModelBuilder
from .verify import VerificationReport, verify_client
from .writer import WriteError, format_generated_file, write_client_module

logger = logging.getLogger(__name__)

# Builtins that appear in rendered type expressions.
_BUILTIN_TYPE_NAMES = frozenset({"bool", "float", "int", "list", "str"})


@dataclass(frozen=True)
class GenerationRun:
    """Generation result with optional verification report."""

    result: GenerationResult
    verification_report: Optional[VerificationReport]


def generate_client(spec: ParsedSpec, options: Optional[GeneratorOptions] = None) -> str:
    """Compile a ``ParsedSpec`` into the source text of a client module.

    The function is pure: equal inputs always produce identical text.

    Args:
        spec (ParsedSpec): Normalized endpoints and schemas.
        options (Optional[GeneratorOptions]): Class and module naming.

    Returns:
        str: Python source for the models and the client class.
    """
    options = options or GeneratorOptions()
    resolver = SchemaTypeResolver()
    definitions = ModelBuilder(resolver).build_definitions(spec.schemas)
    plans = plan_operations(spec, resolver)
    return render_client_module(
        definitions=definitions,
        plans=plans,
        options=options,
        info=spec.info,
    )


def plan_operations(
    spec: ParsedSpec, resolver: Optional[SchemaTypeResolver] = None
) -> tuple[OperationPlan, ...]:
    """Plan one client method per endpoint, in endpoint order."""
    planner = EndpointPlanner(resolver)
    return tuple(planner.plan(endpoint) for endpoint in spec.endpoints)


def run_generation(
    *,
    source: str,
    output_path: Path,
    options: Optional[GeneratorOptions] = None,
    verify: bool = False,
    format_output: bool = True,
) -> GenerationRun:
    """Load a document, generate the client module and write it.

    Args:
        source (str): Path or URL of the OpenAPI document.
        output_path (Path): File the generated module is written to.
        options (Optional[GeneratorOptions]): Class and module naming.
        verify (bool): Whether to import and check the written module.
        format_output (bool): Whether to run Ruff over the written module.

    Returns:
        GenerationRun: Generation metadata and optional verification report.
    """
    spec = load_spec(source)
    logger.info(
        "Generating code for %d schemas and %d endpoints",
        len(spec.schemas),
        len(spec.endpoints),
    )

    source_text = generate_client(spec, options)
    write_client_module(output_path, source_text)
    if format_output:
        format_generated_file(output_path)

    plans = plan_operations(spec)
    result = GenerationResult(
        output_path=str(output_path),
        model_count=sum(1 for schema in spec.schemas.values() if schema is not None),
        method_count=len(plans),
        warnings=tuple(collect_warnings(spec, plans, options)),
    )
    for warning in result.warnings:
        logger.warning(warning)

    if not verify:
        return GenerationRun(result=result, verification_report=None)

    report = verify_client(
        spec=spec,
        plans=plans,
        module_path=output_path,
        options=options or GeneratorOptions(),
    )
    return GenerationRun(result=result, verification_report=report)


def collect_warnings(
    spec: ParsedSpec,
    plans: tuple[OperationPlan, ...],
    options: Optional[GeneratorOptions] = None,
) -> list[str]:
    """Describe inputs that generate but will not work as expected."""
    options = options or GeneratorOptions()
    warnings: list[str] = []

    counts = Counter(plan.method_name for plan in plans)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    if duplicates:
        warnings.append(
            "Several endpoints map to the same method name: " + ", ".join(duplicates)
        )

    module_names = MODULE_IMPORTS | _BUILTIN_TYPE_NAMES | {options.class_name}
    shadowing = sorted(name for name in spec.schemas if name in module_names)
    if shadowing:
        warnings.append(
            "Schema names shadow names the generated module relies on: " + ", ".join(shadowing)
        )

    unresolved = sorted(_referenced_names(spec) - set(spec.schemas))
    if unresolved:
        warnings.append(
            "References to schemas missing from components: " + ", ".join(unresolved)
        )
    return warnings


def _referenced_names(spec: ParsedSpec) -> set[str]:
    nodes: list[SchemaNode] = [schema for schema in spec.schemas.values() if schema is not None]
    for endpoint in spec.endpoints:
        nodes.extend(parameter.schema for parameter in endpoint.parameters)
        nodes.extend((endpoint.request_body or {}).values())
        for content in endpoint.responses.values():
            nodes.extend(content.values())

    names: set[str] = set()
    while nodes:
        node = nodes.pop()
        if isinstance(node, ReferenceSchema):
            names.add(node.name)
        elif isinstance(node, ArraySchema):
            nodes.append(node.item)
        elif isinstance(node, ObjectSchema):
            nodes.extend(node.properties.values())
    return names


__all__ = [
    "GenerationRun",
    "generate_client",
    "plan_operations",
    "run_generation",
    "SpecLoadError",
    "WriteError",
]
