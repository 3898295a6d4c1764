"""Convert named component schemas into model definitions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel

from .model_types import (
    AliasDef,
    Definition,
    FieldDef,
    ModelDef,
    ObjectSchema,
    SchemaNode,
    TypeKind,
)
from .naming import python_identifier, to_upper_lead
from .resolver import SchemaTypeResolver, expression_names, is_nullable, make_optional

# pydantic refuses a ``Config`` attribute next to ``model_config``.
_BASEMODEL_RESERVED = frozenset(dir(BaseModel)) | {"Config"}

# Optional value-typed fields default to their type's zero value.
_ZERO_VALUE_KINDS = frozenset({TypeKind.INTEGER, TypeKind.NUMBER, TypeKind.BOOLEAN})


class ModelBuilder:
    """Create model and alias definitions from ``ParsedSpec.schemas``."""

    def __init__(self, resolver: Optional[SchemaTypeResolver] = None) -> None:
        self._resolver = resolver or SchemaTypeResolver()

    def build_definitions(
        self, schemas: Mapping[str, Optional[SchemaNode]]
    ) -> tuple[Definition, ...]:
        """Build one definition per schema, skipping empty entries."""
        definitions: list[Definition] = []
        for name, schema in schemas.items():
            if schema is None:
                continue
            definitions.append(self.build_definition(name, schema))
        return tuple(definitions)

    def build_definition(self, name: str, schema: SchemaNode) -> Definition:
        """Build a model for object schemas and a type alias otherwise."""
        if isinstance(schema, ObjectSchema):
            return self._build_object_model(name, schema)
        return AliasDef(name=name, annotation=self._resolver.resolve(schema))

    def _build_object_model(self, name: str, schema: ObjectSchema) -> ModelDef:
        resolved = [
            (source_name, self._resolver.resolve(prop_schema))
            for source_name, prop_schema in schema.properties.items()
        ]
        # Class attributes shadow module names while pydantic evaluates annotations.
        annotation_names: set[str] = set()
        for _, annotation in resolved:
            annotation_names.update(expression_names(annotation))
        reserved = _BASEMODEL_RESERVED | annotation_names | {"pydantic", "typing"}

        fields: list[FieldDef] = []
        used_names: set[str] = set()
        for source_name, annotation in resolved:
            required = source_name in schema.required
            field_name = self._field_name(source_name, reserved | frozenset(used_names))
            used_names.add(field_name)

            default_factory: Optional[str] = None
            if is_nullable(annotation, required=required):
                annotation = make_optional(annotation)
            elif not required and annotation.kind in _ZERO_VALUE_KINDS:
                default_factory = annotation.name

            fields.append(
                FieldDef(
                    name=field_name,
                    source_name=source_name,
                    annotation=annotation,
                    required=required,
                    default_factory=default_factory,
                )
            )
        return ModelDef(name=name, fields=tuple(fields))

    def _field_name(self, source_name: str, reserved: frozenset[str]) -> str:
        candidate = python_identifier(to_upper_lead(source_name))
        while candidate in reserved:
            candidate = f"{candidate}_"
        return candidate
