"""Verification of a generated client module against its OpenAPI document."""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass
import inspect
from pathlib import Path
from types import ModuleType
from typing import Any, TypeAliasType

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from pydantic import BaseModel, PydanticUserError

from .model_types import GeneratorOptions, ObjectSchema, OperationPlan, ParsedSpec
from .module_loading import imported_module

_DEFS_PREFIX = "#/$defs/"


class VerificationError(RuntimeError):
    """Raised when a generated module cannot be imported for verification."""


@dataclass(frozen=True)
class VerificationMismatch:
    """One verification mismatch."""

    subject: str
    path: str
    expected: Any
    actual: Any


@dataclass(frozen=True)
class VerificationReport:
    """Result of the verification phase."""

    verified_count: int
    mismatch_count: int
    mismatches: tuple[VerificationMismatch, ...]


def verify_client(
    *,
    spec: ParsedSpec,
    plans: tuple[OperationPlan, ...],
    module_path: Path,
    options: GeneratorOptions,
) -> VerificationReport:
    """Import a generated module and check models and methods against the parsed document."""
    with ExitStack() as stack:
        try:
            module = stack.enter_context(imported_module(module_path))
        except (SyntaxError, ImportError, NameError, TypeError) as exc:
            raise VerificationError(
                f"Generated module {module_path} failed to import: {exc}"
            ) from exc

        mismatches: list[VerificationMismatch] = []
        verified_count = 0
        mismatches.extend(_rebuild_module_models(module))

        for name, schema in spec.schemas.items():
            if schema is None:
                continue
            verified_count += 1
            value = getattr(module, name, None)
            if isinstance(schema, ObjectSchema):
                mismatches.extend(_check_model(name=name, schema=schema, value=value))
            elif not isinstance(value, TypeAliasType):
                mismatches.append(
                    VerificationMismatch(
                        subject=name,
                        path="$",
                        expected="type alias",
                        actual=type(value).__name__,
                    )
                )

        client_class = getattr(module, options.class_name, None)
        for plan in plans:
            verified_count += 1
            mismatches.extend(_check_method(options.class_name, client_class, plan))

    return VerificationReport(
        verified_count=verified_count,
        mismatch_count=len(mismatches),
        mismatches=tuple(mismatches),
    )


def format_report(report: VerificationReport) -> str:
    """Render report as CLI output text."""
    lines = [
        f"Verified definitions and methods: {report.verified_count}",
        f"Mismatches: {report.mismatch_count}",
    ]
    for mismatch in report.mismatches:
        lines.extend(
            [
                f"- {mismatch.subject}",
                f"  path: {mismatch.path}",
                f"  expected: {short_repr(mismatch.expected)}",
                f"  actual: {short_repr(mismatch.actual)}",
            ]
        )
    return "\n".join(lines)


def short_repr(value: Any, *, limit: int = 160) -> str:
    """A short representation for mismatch diagnostics."""
    text = repr(value)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def _check_model(*, name: str, schema: ObjectSchema, value: Any) -> list[VerificationMismatch]:
    if not (isinstance(value, type) and issubclass(value, BaseModel)):
        return [VerificationMismatch(subject=name, path="$", expected="model", actual=value)]
    if not value.__pydantic_complete__:
        # Reported by _rebuild_module_models.
        return []

    generated = value.model_json_schema(by_alias=True)
    mismatches: list[VerificationMismatch] = []
    try:
        validator_for(generated).check_schema(generated)
    except SchemaError as exc:
        mismatches.append(
            VerificationMismatch(subject=name, path="$", expected="valid schema", actual=exc.message)
        )

    generated = _root_schema(generated)

    properties = list(generated.get("properties", {}))
    expected_properties = list(schema.properties)
    if properties != expected_properties:
        mismatches.append(
            VerificationMismatch(
                subject=name,
                path="$.properties",
                expected=expected_properties,
                actual=properties,
            )
        )

    required = sorted(generated.get("required", []))
    expected_required = sorted(set(schema.required) & set(schema.properties))
    if required != expected_required:
        mismatches.append(
            VerificationMismatch(
                subject=name,
                path="$.required",
                expected=expected_required,
                actual=required,
            )
        )
    return mismatches


def _root_schema(generated: dict[str, Any]) -> dict[str, Any]:
    # Self-referencing models are emitted as a $ref into $defs.
    ref = generated.get("$ref")
    if not isinstance(ref, str) or not ref.startswith(_DEFS_PREFIX):
        return generated
    return generated.get("$defs", {}).get(ref.removeprefix(_DEFS_PREFIX), generated)


def _check_method(
    class_name: str, client_class: Any, plan: OperationPlan
) -> list[VerificationMismatch]:
    subject = f"{class_name}.{plan.method_name}"
    method = getattr(client_class, plan.method_name, None)
    if not inspect.iscoroutinefunction(method):
        return [
            VerificationMismatch(subject=subject, path="$", expected="async method", actual=method)
        ]

    parameters = [name for name in inspect.signature(method).parameters if name != "self"]
    expected = [parameter.name for parameter in plan.parameters]
    if parameters != expected:
        return [
            VerificationMismatch(
                subject=subject,
                path="$.parameters",
                expected=expected,
                actual=parameters,
            )
        ]
    return []


def _rebuild_module_models(module: ModuleType) -> list[VerificationMismatch]:
    mismatches: list[VerificationMismatch] = []
    for value in list(module.__dict__.values()):
        if not isinstance(value, type) or not issubclass(value, BaseModel):
            continue
        if value is BaseModel or value.__module__ != module.__name__:
            continue
        try:
            value.model_rebuild(_types_namespace=module.__dict__)
        except (PydanticUserError, NameError) as exc:
            mismatches.append(
                VerificationMismatch(
                    subject=value.__name__,
                    path="$.annotations",
                    expected="resolvable annotations",
                    actual=str(exc),
                )
            )
    return mismatches

