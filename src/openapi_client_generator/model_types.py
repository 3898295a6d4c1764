"""Internal datatypes for loading, planning and emitting clients."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Union

type JSONPrimitive = Union[str, int, float, bool, None]
type JSONValue = Union[JSONPrimitive, list[JSONValue], Mapping[str, JSONValue]]
type JSONObject = Mapping[str, JSONValue]

type ParameterLocation = Literal["path", "query"]


@dataclass(frozen=True)
class PrimitiveSchema:
    """A scalar schema such as ``string`` with an optional ``format``."""

    kind: str
    format: Optional[str] = None


@dataclass(frozen=True)
class ReferenceSchema:
    """A schema pointing at a named component schema."""

    name: str


@dataclass(frozen=True)
class ArraySchema:
    """A schema describing a homogeneous list."""

    item: SchemaNode


@dataclass(frozen=True)
class ObjectSchema:
    """A schema with named properties."""

    properties: Mapping[str, SchemaNode] = field(default_factory=dict)
    required: frozenset[str] = frozenset()


@dataclass(frozen=True)
class UntypedSchema:
    """A schema the loader could not classify, or no schema at all."""


type SchemaNode = Union[PrimitiveSchema, ReferenceSchema, ArraySchema, ObjectSchema, UntypedSchema]
type ContentMap = Mapping[str, SchemaNode]


@dataclass(frozen=True)
class ParameterDescriptor:
    """One path or query parameter of an endpoint."""

    name: str
    location: ParameterLocation
    schema: SchemaNode
    required: bool


@dataclass(frozen=True)
class EndpointDescriptor:
    """Normalized metadata for one HTTP operation."""

    path: str
    method: str
    operation_id: Optional[str] = None
    parameters: tuple[ParameterDescriptor, ...] = ()
    request_body: Optional[ContentMap] = None
    responses: Mapping[str, ContentMap] = field(default_factory=dict)
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ApiInfo:
    """Document-level ``info`` metadata."""

    title: str = ""
    version: str = ""
    description: Optional[str] = None


@dataclass(frozen=True)
class ParsedSpec:
    """The normalized input of client generation."""

    info: ApiInfo
    endpoints: tuple[EndpointDescriptor, ...]
    schemas: Mapping[str, Optional[SchemaNode]]


@dataclass(frozen=True)
class GeneratorOptions:
    """Caller-supplied naming options for the generated module."""

    class_name: str = "ApiClient"
    module_name: str = "GeneratedClient"


class TypeKind(Enum):
    """Coarse category of a resolved type, used by the nullability policy."""

    UNTYPED = "untyped"
    REFERENCE = "reference"
    ARRAY = "array"
    OBJECT = "object"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class TypeRef:
    """A resolved Python type expression such as ``list[Tag]``."""

    name: str
    kind: TypeKind
    args: tuple[TypeRef, ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}[{', '.join(str(arg) for arg in self.args)}]"

    def names(self) -> set[str]:
        """Return every identifier used by this type expression."""
        found = {self.name}
        for arg in self.args:
            found.update(arg.names())
        return found


@dataclass(frozen=True)
class PlannedParameter:
    """One parameter of a generated client method."""

    name: str
    source_name: str
    location: Literal["path", "query", "body"]
    annotation: TypeRef


@dataclass(frozen=True)
class OperationPlan:
    """Everything the method emitter needs for one endpoint."""

    method_name: str
    http_method: str
    path_template: str
    path_parameters: tuple[PlannedParameter, ...]
    query_parameters: tuple[PlannedParameter, ...]
    body: Optional[PlannedParameter]
    return_type: Optional[TypeRef]

    @property
    def has_body(self) -> bool:
        return self.body is not None

    @property
    def parameters(self) -> tuple[PlannedParameter, ...]:
        """Method parameters in signature order."""
        trailing = (self.body,) if self.body is not None else ()
        return (*self.path_parameters, *self.query_parameters, *trailing)


@dataclass(frozen=True)
class FieldDef:
    """Represents a single pydantic model field."""

    name: str
    source_name: str
    annotation: TypeRef
    required: bool
    default_factory: Optional[str] = None


@dataclass(frozen=True)
class ModelDef:
    """Represents a generated pydantic model class."""

    name: str
    fields: tuple[FieldDef, ...]


@dataclass(frozen=True)
class AliasDef:
    """Represents a generated ``type`` alias for a non-object schema."""

    name: str
    annotation: TypeRef


type Definition = Union[ModelDef, AliasDef]


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_path: str
    model_count: int
    method_count: int
    warnings: tuple[str, ...]
