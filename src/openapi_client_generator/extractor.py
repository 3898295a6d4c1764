"""Extract the normalized ``ParsedSpec`` from a loaded OpenAPI document.

Parameters, request bodies and responses given as local ``$ref`` pointers are
followed into ``components``. Schema ``$ref`` pointers are never followed:
they become ``ReferenceSchema`` nodes naming the target component, so
recursive schema graphs stay finite.

Path-level parameters provide defaults that operation-level parameters
override when they share the same ``name`` and ``in`` values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from .loader import SpecLoadError, load_openapi_document
from .model_types import (
    ApiInfo,
    ArraySchema,
    ContentMap,
    EndpointDescriptor,
    JSONObject,
    ObjectSchema,
    ParameterDescriptor,
    ParsedSpec,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaNode,
    UntypedSchema,
)

_HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "patch",
    "head",
    "options",
    "trace",
)

_PRIMITIVE_TYPES = frozenset({"string", "integer", "number", "boolean"})
_PARAMETER_LOCATIONS = frozenset({"path", "query"})


def load_spec(source: str) -> ParsedSpec:
    """Load an OpenAPI document from a path or URL and extract a ``ParsedSpec``."""
    return extract_spec(load_openapi_document(source))


def extract_spec(document: JSONObject) -> ParsedSpec:
    """Build a ``ParsedSpec`` from a validated OpenAPI document."""
    raw_paths = document.get("paths")
    if not isinstance(raw_paths, dict):
        raise SpecLoadError("OpenAPI document missing 'paths' object")

    references = _ReferenceIndex(document)
    endpoints: list[EndpointDescriptor] = []
    for path, path_item in raw_paths.items():
        if not isinstance(path, str) or not isinstance(path_item, dict):
            continue
        path_item = references.follow(path_item)
        for method in _HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                endpoints.append(
                    _extract_endpoint(
                        path=path,
                        method=method,
                        operation=operation,
                        path_item=path_item,
                        references=references,
                    )
                )

    return ParsedSpec(
        info=_extract_info(document),
        endpoints=tuple(endpoints),
        schemas=_extract_component_schemas(document),
    )


def schema_node(raw: Any) -> SchemaNode:
    """Convert a raw schema object into a ``SchemaNode``."""
    if not isinstance(raw, dict):
        return UntypedSchema()

    ref = raw.get("$ref")
    if isinstance(ref, str):
        return ReferenceSchema(name=ref.rsplit("/", maxsplit=1)[-1])

    schema_type = _primary_type(raw.get("type"))
    if schema_type == "array":
        return ArraySchema(item=schema_node(raw.get("items")))
    if schema_type in _PRIMITIVE_TYPES:
        fmt = raw.get("format")
        return PrimitiveSchema(kind=schema_type, format=fmt if isinstance(fmt, str) else None)
    if schema_type == "object" or isinstance(raw.get("properties"), dict):
        return _object_schema(raw)
    return UntypedSchema()


def _primary_type(raw_type: Any) -> Optional[str]:
    # OpenAPI 3.1 allows ``type: [string, "null"]``.
    if isinstance(raw_type, str):
        return raw_type
    if isinstance(raw_type, list):
        for member in raw_type:
            if isinstance(member, str) and member != "null":
                return member
    return None


def _object_schema(raw: dict[str, Any]) -> ObjectSchema:
    raw_properties = raw.get("properties")
    properties: dict[str, SchemaNode] = {}
    if isinstance(raw_properties, dict):
        for name, prop in raw_properties.items():
            if isinstance(name, str):
                properties[name] = schema_node(prop)

    raw_required = raw.get("required")
    required = (
        frozenset(name for name in raw_required if isinstance(name, str))
        if isinstance(raw_required, list)
        else frozenset()
    )
    return ObjectSchema(properties=properties, required=required)


def _extract_info(document: JSONObject) -> ApiInfo:
    info = document.get("info")
    if not isinstance(info, dict):
        return ApiInfo()
    title = info.get("title")
    version = info.get("version")
    description = info.get("description")
    return ApiInfo(
        title=title if isinstance(title, str) else "",
        version=str(version) if version is not None else "",
        description=description if isinstance(description, str) else None,
    )


def _extract_component_schemas(document: JSONObject) -> dict[str, Optional[SchemaNode]]:
    components = document.get("components")
    if not isinstance(components, dict):
        return {}
    raw_schemas = components.get("schemas")
    if not isinstance(raw_schemas, dict):
        return {}

    schemas: dict[str, Optional[SchemaNode]] = {}
    for name, raw in raw_schemas.items():
        if not isinstance(name, str):
            continue
        schemas[name] = schema_node(raw) if isinstance(raw, dict) else None
    return schemas


def _extract_endpoint(
    *,
    path: str,
    method: str,
    operation: dict[str, Any],
    path_item: dict[str, Any],
    references: _ReferenceIndex,
) -> EndpointDescriptor:
    operation_id = operation.get("operationId")
    raw_tags = operation.get("tags")
    tags = (
        tuple(tag for tag in raw_tags if isinstance(tag, str))
        if isinstance(raw_tags, list)
        else ()
    )
    return EndpointDescriptor(
        path=path,
        method=method.upper(),
        operation_id=operation_id if isinstance(operation_id, str) and operation_id else None,
        parameters=_merge_parameters(
            references.collect(path_item.get("parameters")),
            references.collect(operation.get("parameters")),
        ),
        request_body=_request_body(operation.get("requestBody"), references),
        responses=_responses(operation.get("responses"), references),
        tags=tags,
    )


def _merge_parameters(
    path_level: list[dict[str, Any]],
    operation_level: list[dict[str, Any]],
) -> tuple[ParameterDescriptor, ...]:
    merged: dict[tuple[str, str], ParameterDescriptor] = {}
    for raw in [*path_level, *operation_level]:
        name = raw.get("name")
        location = raw.get("in")
        if not isinstance(name, str) or not name or location not in _PARAMETER_LOCATIONS:
            continue
        merged[(name, location)] = ParameterDescriptor(
            name=name,
            location=location,
            schema=schema_node(raw.get("schema")),
            required=location == "path" or bool(raw.get("required")),
        )
    return tuple(merged.values())


def _request_body(raw: Any, references: _ReferenceIndex) -> Optional[ContentMap]:
    if not isinstance(raw, dict):
        return None
    return _content_map(references.follow(raw).get("content"))


def _responses(raw: Any, references: _ReferenceIndex) -> dict[str, ContentMap]:
    if not isinstance(raw, dict):
        return {}
    responses: dict[str, ContentMap] = {}
    for status_code, response in raw.items():
        if not isinstance(response, dict):
            continue
        content = _content_map(references.follow(response).get("content"))
        responses[str(status_code)] = content or {}
    return responses


def _content_map(raw: Any) -> Optional[ContentMap]:
    if not isinstance(raw, dict):
        return None
    content: dict[str, SchemaNode] = {}
    for content_type, media in raw.items():
        if not isinstance(content_type, str):
            continue
        schema = media.get("schema") if isinstance(media, dict) else None
        content[content_type] = schema_node(schema)
    return content


class _ReferenceIndex:
    """Follow local ``$ref`` pointers for non-schema objects."""

    def __init__(self, document: JSONObject) -> None:
        self._document = document

    def follow(self, node: dict[str, Any]) -> dict[str, Any]:
        """Return the object ``node`` points at, or ``node`` itself."""
        seen: set[str] = set()
        current = node
        while isinstance(current.get("$ref"), str):
            ref = current["$ref"]
            if ref in seen:
                raise SpecLoadError(f"Circular reference: {ref}")
            seen.add(ref)
            current = self._lookup(ref)
        return current

    def collect(self, raw: Any) -> list[dict[str, Any]]:
        """Resolve every object of a ``parameters`` list."""
        if not isinstance(raw, list):
            return []
        return [self.follow(item) for item in raw if isinstance(item, dict)]

    def _lookup(self, ref: str) -> dict[str, Any]:
        if not ref.startswith("#/"):
            raise SpecLoadError(f"Only local references are currently supported: {ref}")

        current: Any = self._document
        for token in ref[2:].split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if not isinstance(current, Mapping) or token not in current:
                raise SpecLoadError(f"Unresolvable reference: {ref}")
            current = current[token]
        if not isinstance(current, dict):
            raise SpecLoadError(f"Reference does not point at an object: {ref}")
        return current
