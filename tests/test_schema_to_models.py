"""Tests for model and alias definitions built from component schemas."""

from __future__ import annotations

from openapi_client_generator.model_types import (
    AliasDef,
    ArraySchema,
    FieldDef,
    ModelDef,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    UntypedSchema,
)
from openapi_client_generator.schema_to_models import ModelBuilder


def _model(definition: object) -> ModelDef:
    assert isinstance(definition, ModelDef)
    return definition


def _fields_by_alias(model: ModelDef) -> dict[str, FieldDef]:
    return {field.source_name: field for field in model.fields}


def test_empty_object_has_no_fields() -> None:
    model = _model(ModelBuilder().build_definition("Empty", ObjectSchema()))
    assert model.name == "Empty"
    assert model.fields == ()


def test_pet_fields() -> None:
    schema = ObjectSchema(
        properties={
            "name": PrimitiveSchema("string"),
            "tags": ArraySchema(ReferenceSchema("Tag")),
        },
        required=frozenset({"name"}),
    )
    fields = _fields_by_alias(_model(ModelBuilder().build_definition("Pet", schema)))

    assert fields["name"].name == "Name"
    assert str(fields["name"].annotation) == "str"
    assert fields["name"].required is True

    assert fields["tags"].name == "Tags"
    assert str(fields["tags"].annotation) == "Optional[list[Tag]]"
    assert fields["tags"].required is False


def test_required_fields_never_nullable() -> None:
    properties = {
        "s": PrimitiveSchema("string"),
        "a": ArraySchema(PrimitiveSchema("string")),
        "o": ObjectSchema(),
        "r": ReferenceSchema("Other"),
        "i": PrimitiveSchema("integer"),
    }
    schema = ObjectSchema(properties=properties, required=frozenset(properties))
    model = _model(ModelBuilder().build_definition("AllRequired", schema))
    for field in model.fields:
        assert field.annotation.name != "Optional", field
        assert field.default_factory is None


def test_optional_value_fields_default_to_zero_value() -> None:
    schema = ObjectSchema(
        properties={
            "count": PrimitiveSchema("integer", "int32"),
            "price": PrimitiveSchema("number"),
            "ratio": PrimitiveSchema("number", "double"),
            "active": PrimitiveSchema("boolean"),
            "extra": UntypedSchema(),
        }
    )
    fields = _fields_by_alias(_model(ModelBuilder().build_definition("Counters", schema)))

    assert str(fields["count"].annotation) == "int"
    assert fields["count"].default_factory == "int"
    assert str(fields["price"].annotation) == "Decimal"
    assert fields["price"].default_factory == "Decimal"
    assert fields["ratio"].default_factory == "float"
    assert str(fields["active"].annotation) == "bool"
    assert fields["active"].default_factory == "bool"
    assert str(fields["extra"].annotation) == "Any"
    assert fields["extra"].default_factory is None


def test_field_order_follows_properties() -> None:
    schema = ObjectSchema(
        properties={
            "zeta": PrimitiveSchema("string"),
            "alpha": PrimitiveSchema("string"),
            "mid": PrimitiveSchema("string"),
        }
    )
    model = _model(ModelBuilder().build_definition("Ordered", schema))
    assert [field.source_name for field in model.fields] == ["zeta", "alpha", "mid"]


def test_field_shadowing_annotation_name_gets_suffix() -> None:
    schema = ObjectSchema(properties={"category": ReferenceSchema("Category")})
    model = _model(ModelBuilder().build_definition("Pet", schema))
    assert model.fields[0].name == "Category_"
    assert model.fields[0].source_name == "category"


def test_field_names_avoid_keywords_and_basemodel_members() -> None:
    schema = ObjectSchema(
        properties={
            "none": PrimitiveSchema("string"),
            "config": PrimitiveSchema("string"),
            "Config": PrimitiveSchema("string"),
            "model_dump": PrimitiveSchema("string"),
        }
    )
    model = _model(ModelBuilder().build_definition("Odd", schema))
    names = [field.name for field in model.fields]
    assert names == ["None_", "Config_", "Config__", "Model_dump"]
    assert len(set(names)) == len(names)


def test_non_object_schemas_become_aliases() -> None:
    builder = ModelBuilder()
    alias = builder.build_definition("PetList", ArraySchema(ReferenceSchema("Pet")))
    assert isinstance(alias, AliasDef)
    assert str(alias.annotation) == "list[Pet]"

    status = builder.build_definition("Status", PrimitiveSchema("string"))
    assert isinstance(status, AliasDef)
    assert str(status.annotation) == "str"


def test_build_definitions_skips_missing_schemas_and_keeps_order() -> None:
    definitions = ModelBuilder().build_definitions(
        {
            "B": ObjectSchema(),
            "Broken": None,
            "A": PrimitiveSchema("string"),
        }
    )
    assert [definition.name for definition in definitions] == ["B", "A"]
