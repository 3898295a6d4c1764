"""Schema type resolution and content selection."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from .model_types import (
    ArraySchema,
    ContentMap,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaNode,
    TypeKind,
    TypeRef,
    UntypedSchema,
)

ANY_TYPE = TypeRef("Any", TypeKind.UNTYPED)

_JSON_MARKER = "json"
_HTTP_SUCCESS_PREFIX = "2"

_NULLABLE_KINDS = frozenset(
    {TypeKind.STRING, TypeKind.ARRAY, TypeKind.OBJECT, TypeKind.REFERENCE}
)

_STRING_FORMATS: dict[str, str] = {
    "date-time": "datetime",
    "date": "date",
    "time": "time",
    "uuid": "UUID",
}

_NUMBER_FORMATS: dict[str, str] = {
    "float": "float",
    "double": "float",
}

# Rendered as ``module.name`` so that schema names cannot shadow them.
TYPE_MODULES: dict[str, str] = {
    "Any": "typing",
    "Optional": "typing",
    "datetime": "datetime",
    "date": "datetime",
    "time": "datetime",
    "Decimal": "decimal",
    "UUID": "uuid",
}


class SchemaTypeResolver:
    """Map schema nodes onto Python type expressions.

    References are never expanded: a ``ReferenceSchema`` resolves to its name,
    which is what keeps self-referential and mutually recursive schema graphs
    finite. The resolver holds no state and can be shared freely.
    """

    def resolve(self, node: SchemaNode) -> TypeRef:
        """Resolve ``node`` to a type expression."""
        if isinstance(node, ReferenceSchema):
            return TypeRef(node.name, TypeKind.REFERENCE)
        if isinstance(node, ArraySchema):
            return TypeRef("list", TypeKind.ARRAY, (self.resolve(node.item),))
        if isinstance(node, PrimitiveSchema):
            return self._resolve_primitive(node)
        if isinstance(node, ObjectSchema):
            return TypeRef("Any", TypeKind.OBJECT)
        if isinstance(node, UntypedSchema):
            return ANY_TYPE
        return ANY_TYPE

    def _resolve_primitive(self, node: PrimitiveSchema) -> TypeRef:
        fmt = node.format or ""
        if node.kind == "string":
            return TypeRef(_STRING_FORMATS.get(fmt, "str"), TypeKind.STRING)
        if node.kind == "integer":
            # int32 and int64 share Python's arbitrary precision int.
            return TypeRef("int", TypeKind.INTEGER)
        if node.kind == "number":
            return TypeRef(_NUMBER_FORMATS.get(fmt, "Decimal"), TypeKind.NUMBER)
        if node.kind == "boolean":
            return TypeRef("bool", TypeKind.BOOLEAN)
        return ANY_TYPE

    def content_type(self, content: Mapping[str, SchemaNode]) -> Optional[TypeRef]:
        """Resolve the JSON entry of a content map, or ``None`` without one."""
        schema = select_json_schema(content)
        if schema is None:
            return None
        if isinstance(schema, ReferenceSchema):
            return TypeRef(schema.name, TypeKind.REFERENCE)
        return self.resolve(schema)

    def body_type(self, content: Optional[ContentMap]) -> TypeRef:
        """Type of a request body parameter, ``Any`` without JSON content."""
        resolved = self.content_type(content or {})
        return resolved if resolved is not None else ANY_TYPE

    def response_type(self, responses: Mapping[str, ContentMap]) -> Optional[TypeRef]:
        """Type returned by the first 2xx response, ``None`` for void."""
        success = select_success_content(responses)
        if success is None:
            return None
        return self.content_type(success)


def is_nullable(annotation: TypeRef, *, required: bool) -> bool:
    """Whether an optional slot of this type gets the ``Optional`` marker.

    Optional integers, numbers and booleans stay non-nullable on purpose.
    """
    return not required and annotation.kind in _NULLABLE_KINDS


def make_optional(annotation: TypeRef) -> TypeRef:
    """Wrap ``annotation`` in ``Optional[...]``."""
    return TypeRef("Optional", annotation.kind, (annotation,))


def select_json_schema(content: Mapping[str, SchemaNode]) -> Optional[SchemaNode]:
    """Return the schema of the first content type mentioning ``json``."""
    for content_type, schema in content.items():
        if _JSON_MARKER in content_type:
            return schema
    return None


def select_success_content(
    responses: Mapping[str, ContentMap],
) -> Optional[ContentMap]:
    """Return the content map of the first status code starting with ``2``."""
    for status_code, content in responses.items():
        if status_code.startswith(_HTTP_SUCCESS_PREFIX):
            return content
    return None


def qualified_module(annotation: TypeRef) -> Optional[str]:
    """Module that qualifies ``annotation.name`` when rendered, if any.

    A bare reference is a schema name and is never qualified, even when a
    schema happens to be called ``Any`` or ``datetime``.
    """
    if annotation.kind is TypeKind.REFERENCE and not annotation.args:
        return None
    return TYPE_MODULES.get(annotation.name)


def expression_names(annotation: TypeRef) -> set[str]:
    """Names looked up when the rendered type expression is evaluated."""
    module = qualified_module(annotation)
    found = {module if module is not None else annotation.name}
    for arg in annotation.args:
        found.update(expression_names(arg))
    return found
