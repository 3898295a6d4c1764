"""Per-endpoint operation planning."""

from __future__ import annotations

import re
from typing import Optional

from .model_types import EndpointDescriptor, OperationPlan, PlannedParameter
from .naming import method_name, python_identifier, to_lower_lead
from .resolver import SchemaTypeResolver, expression_names, make_optional

_PATH_PLACEHOLDER_RE = re.compile(r"\{(?P<name>[^{}]+)\}")

BODY_PARAMETER_NAME = "body"

# Locals of every generated method body.
PATH_VARIABLE = "_path"
QUERY_VARIABLE = "_query"

# Names a parameter may not take inside ``async def Method(self, ...)``.
_RESERVED_PARAMETER_NAMES = frozenset({"self", BODY_PARAMETER_NAME})
_METHOD_LOCALS = frozenset({"self", PATH_VARIABLE, QUERY_VARIABLE})


def parameter_name(source_name: str) -> str:
    """Normalize a wire parameter name into a method parameter name."""
    return python_identifier(to_lower_lead(source_name), reserved=_RESERVED_PARAMETER_NAMES)


class EndpointPlanner:
    """Derive an ``OperationPlan`` from each ``EndpointDescriptor``."""

    def __init__(self, resolver: Optional[SchemaTypeResolver] = None) -> None:
        self._resolver = resolver or SchemaTypeResolver()

    def plan(self, endpoint: EndpointDescriptor) -> OperationPlan:
        """Plan method name, parameters, path template and return type."""
        return_type = self._resolver.response_type(endpoint.responses)

        # The return type is evaluated inside the method body, so parameters
        # must not shadow any name it looks up.
        taken = set(_METHOD_LOCALS)
        if return_type is not None:
            taken.update(expression_names(return_type))
        body_name = _claim(BODY_PARAMETER_NAME, taken)

        path_parameters: list[PlannedParameter] = []
        query_parameters: list[PlannedParameter] = []
        for parameter in endpoint.parameters:
            name = _claim(parameter_name(parameter.name), taken)
            if parameter.location == "path":
                path_parameters.append(
                    PlannedParameter(
                        name=name,
                        source_name=parameter.name,
                        location="path",
                        annotation=self._resolver.resolve(parameter.schema),
                    )
                )
            else:
                query_parameters.append(
                    PlannedParameter(
                        name=name,
                        source_name=parameter.name,
                        location="query",
                        annotation=make_optional(self._resolver.resolve(parameter.schema)),
                    )
                )

        body: Optional[PlannedParameter] = None
        if endpoint.request_body:
            body = PlannedParameter(
                name=body_name,
                source_name=BODY_PARAMETER_NAME,
                location="body",
                annotation=self._resolver.body_type(endpoint.request_body),
            )

        return OperationPlan(
            method_name=python_identifier(
                method_name(endpoint.method, endpoint.path, endpoint.operation_id)
            ),
            http_method=endpoint.method.upper(),
            path_template=rewrite_path_template(
                endpoint.path,
                {parameter.source_name: parameter.name for parameter in path_parameters},
            ),
            path_parameters=tuple(path_parameters),
            query_parameters=tuple(query_parameters),
            body=body,
            return_type=return_type,
        )


def _claim(name: str, taken: set[str]) -> str:
    while name in taken:
        name = f"{name}_"
    taken.add(name)
    return name


def rewrite_path_template(path: str, names: dict[str, str]) -> str:
    """Rewrite ``{source}`` placeholders to ``{normalized}`` names.

    Placeholders without a matching path parameter are left untouched.
    """

    def _replace(match: re.Match[str]) -> str:
        source = match.group("name")
        return "{" + names.get(source, source) + "}"

    return _PATH_PLACEHOLDER_RE.sub(_replace, path)


def split_path_template(template: str) -> list[tuple[str, Optional[str]]]:
    """Split a template into ``(literal, placeholder)`` pairs in path order.

    The placeholder of the last pair is ``None`` when the template ends with
    literal text.
    """
    parts: list[tuple[str, Optional[str]]] = []
    position = 0
    for match in _PATH_PLACEHOLDER_RE.finditer(template):
        parts.append((template[position : match.start()], match.group("name")))
        position = match.end()
    if position < len(template) or not parts:
        parts.append((template[position:], None))
    return parts
