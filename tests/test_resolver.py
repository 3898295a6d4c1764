"""Tests for schema type resolution and content selection."""

from __future__ import annotations

import pytest

from openapi_client_generator.model_types import (
    ArraySchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaNode,
    TypeKind,
    UntypedSchema,
)
from openapi_client_generator.resolver import (
    SchemaTypeResolver,
    expression_names,
    is_nullable,
    make_optional,
    qualified_module,
    select_json_schema,
    select_success_content,
)


@pytest.mark.parametrize(
    ("node", "expected"),
    [
        (UntypedSchema(), "Any"),
        (ReferenceSchema("Pet"), "Pet"),
        (ReferenceSchema("NotDeclaredAnywhere"), "NotDeclaredAnywhere"),
        (ArraySchema(ReferenceSchema("Tag")), "list[Tag]"),
        (ArraySchema(ArraySchema(PrimitiveSchema("integer"))), "list[list[int]]"),
        (PrimitiveSchema("string"), "str"),
        (PrimitiveSchema("string", "date-time"), "datetime"),
        (PrimitiveSchema("string", "date"), "date"),
        (PrimitiveSchema("string", "time"), "time"),
        (PrimitiveSchema("string", "uuid"), "UUID"),
        (PrimitiveSchema("string", "email"), "str"),
        (PrimitiveSchema("integer", "int64"), "int"),
        (PrimitiveSchema("integer", "int32"), "int"),
        (PrimitiveSchema("number", "float"), "float"),
        (PrimitiveSchema("number", "double"), "float"),
        (PrimitiveSchema("number"), "Decimal"),
        (PrimitiveSchema("boolean"), "bool"),
        (ObjectSchema(), "Any"),
        (ObjectSchema({"id": PrimitiveSchema("string")}), "Any"),
        (PrimitiveSchema("file"), "Any"),
    ],
)
def test_resolve(node: SchemaNode, expected: str) -> None:
    assert str(SchemaTypeResolver().resolve(node)) == expected


def test_resolve_reports_kinds() -> None:
    resolver = SchemaTypeResolver()
    assert resolver.resolve(ReferenceSchema("Pet")).kind is TypeKind.REFERENCE
    assert resolver.resolve(ArraySchema(UntypedSchema())).kind is TypeKind.ARRAY
    assert resolver.resolve(ObjectSchema()).kind is TypeKind.OBJECT
    assert resolver.resolve(UntypedSchema()).kind is TypeKind.UNTYPED
    assert resolver.resolve(PrimitiveSchema("number")).kind is TypeKind.NUMBER


@pytest.mark.parametrize(
    ("node", "nullable"),
    [
        (PrimitiveSchema("string"), True),
        (ArraySchema(PrimitiveSchema("string")), True),
        (ObjectSchema(), True),
        (ReferenceSchema("Pet"), True),
        (PrimitiveSchema("integer"), False),
        (PrimitiveSchema("number"), False),
        (PrimitiveSchema("boolean"), False),
        (UntypedSchema(), False),
    ],
)
def test_optional_nullability_is_asymmetric(node: SchemaNode, nullable: bool) -> None:
    annotation = SchemaTypeResolver().resolve(node)
    assert is_nullable(annotation, required=False) is nullable
    assert is_nullable(annotation, required=True) is False


def test_make_optional_wraps_type() -> None:
    wrapped = make_optional(SchemaTypeResolver().resolve(ArraySchema(ReferenceSchema("Tag"))))
    assert str(wrapped) == "Optional[list[Tag]]"
    assert wrapped.kind is TypeKind.ARRAY
    assert wrapped.names() == {"Optional", "list", "Tag"}


def test_json_entry_is_first_content_type_containing_json() -> None:
    content = {
        "text/plain": PrimitiveSchema("string"),
        "application/problem+json": ReferenceSchema("Problem"),
        "application/json": ReferenceSchema("Pet"),
    }
    assert select_json_schema(content) == ReferenceSchema("Problem")
    assert select_json_schema({"application/xml": UntypedSchema()}) is None


def test_success_response_is_first_status_starting_with_two() -> None:
    responses = {
        "404": {},
        "201": {"application/json": ReferenceSchema("Created")},
        "200": {"application/json": ReferenceSchema("Pet")},
    }
    assert select_success_content(responses) == {"application/json": ReferenceSchema("Created")}
    assert select_success_content({"default": {}, "500": {}}) is None


def test_response_type_from_success_entry_only() -> None:
    resolver = SchemaTypeResolver()
    responses = {
        "200": {"application/json": ReferenceSchema("Pet")},
        "404": {},
    }
    resolved = resolver.response_type(responses)
    assert resolved is not None
    assert str(resolved) == "Pet"


def test_response_type_is_void_without_json_success_content() -> None:
    resolver = SchemaTypeResolver()
    assert resolver.response_type({"204": {}}) is None
    assert resolver.response_type({"200": {"text/plain": PrimitiveSchema("string")}}) is None
    assert resolver.response_type({"404": {"application/json": ReferenceSchema("Error")}}) is None


def test_body_type_falls_back_to_any() -> None:
    resolver = SchemaTypeResolver()
    assert str(resolver.body_type({"application/octet-stream": PrimitiveSchema("string")})) == "Any"
    assert str(resolver.body_type({"application/json": ArraySchema(ReferenceSchema("Pet"))})) == (
        "list[Pet]"
    )


def test_json_entry_without_schema_returns_any() -> None:
    resolver = SchemaTypeResolver()
    resolved = resolver.response_type({"200": {"application/json": UntypedSchema()}})
    assert resolved is not None
    assert str(resolved) == "Any"
    assert resolved.kind is TypeKind.UNTYPED


def test_expression_names_use_module_for_qualified_types() -> None:
    resolver = SchemaTypeResolver()
    annotation = make_optional(resolver.resolve(ArraySchema(PrimitiveSchema("string", "date-time"))))
    assert expression_names(annotation) == {"typing", "list", "datetime"}
    assert qualified_module(resolver.resolve(ReferenceSchema("Any"))) is None
    assert expression_names(resolver.resolve(ReferenceSchema("Any"))) == {"Any"}
    assert qualified_module(resolver.resolve(PrimitiveSchema("number"))) == "decimal"
