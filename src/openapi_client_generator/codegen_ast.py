"""AST-based Python code generation for API client modules."""

from __future__ import annotations

import ast
from collections.abc import Iterable
import textwrap

from .model_types import (
    AliasDef,
    ApiInfo,
    Definition,
    FieldDef,
    GeneratorOptions,
    ModelDef,
    OperationPlan,
    PlannedParameter,
    TypeRef,
)
from .planner import PATH_VARIABLE, QUERY_VARIABLE, split_path_template
from .resolver import TYPE_MODULES, qualified_module

# Imported as whole modules; schema classes share the module namespace.
_OPTIONAL_STDLIB_MODULES: tuple[str, ...] = ("datetime", "decimal", "uuid")
_THIRD_PARTY_MODULES: tuple[str, ...] = ("httpx", "pydantic", "pydantic_core")

MODULE_IMPORTS = frozenset({*_OPTIONAL_STDLIB_MODULES, "typing", *_THIRD_PARTY_MODULES})

_CLIENT_SUPPORT_SOURCE = '''
def __init__(self, http_client: httpx.AsyncClient, base_url: str = "") -> None:
    self._http_client = http_client
    self._base_url = base_url

async def _send_request(
    self, path: str, method: str, response_type: typing.Any, body: typing.Any = None
) -> typing.Any:
    """Send a request and decode the JSON payload as ``response_type``."""
    request = self._http_client.build_request(
        method,
        self._base_url + path,
        json=None if body is None else pydantic_core.to_jsonable_python(body, by_alias=True),
    )
    response = await self._http_client.send(request)
    response.raise_for_status()
    if not response.content:
        return None
    return pydantic.TypeAdapter(response_type).validate_json(response.content)

async def _send_request_no_content(
    self, path: str, method: str, body: typing.Any = None
) -> None:
    """Send a request whose response payload is ignored."""
    request = self._http_client.build_request(
        method,
        self._base_url + path,
        json=None if body is None else pydantic_core.to_jsonable_python(body, by_alias=True),
    )
    response = await self._http_client.send(request)
    response.raise_for_status()
'''


def render_client_module(
    *,
    definitions: tuple[Definition, ...],
    plans: tuple[OperationPlan, ...],
    options: GeneratorOptions,
    info: ApiInfo,
) -> str:
    """Render models and the client class as Python source code using AST.

    Args:
        definitions (tuple[Definition, ...]): Models and aliases in schema order.
        plans (tuple[OperationPlan, ...]): Operation plans in endpoint order.
        options (GeneratorOptions): Client class and module naming.
        info (ApiInfo): Document metadata used in the module docstring.

    Returns:
        str: Generated Python source code.
    """
    body: list[ast.stmt] = [
        ast.Expr(value=ast.Constant(value=_module_docstring(options, info))),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(_build_imports(definitions=definitions, plans=plans))

    for definition in definitions:
        if isinstance(definition, ModelDef):
            body.append(_model_to_ast(definition))
        else:
            body.append(_alias_to_ast(definition))

    body.append(_client_to_ast(options.class_name, plans))

    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"


def render_method(plan: OperationPlan) -> ast.AsyncFunctionDef:
    """Render one client method that delegates to the dispatch helpers."""
    statements: list[ast.stmt] = []
    path_expr = _path_template_expr(
        plan.path_template, {parameter.name for parameter in plan.path_parameters}
    )

    if plan.query_parameters:
        statements.append(
            ast.AnnAssign(
                target=_store(QUERY_VARIABLE),
                annotation=ast.Subscript(value=_load("list"), slice=_load("str"), ctx=ast.Load()),
                value=ast.List(elts=[], ctx=ast.Load()),
                simple=1,
            )
        )
        for parameter in plan.query_parameters:
            statements.append(_query_guard(parameter))
        path_expr = ast.BinOp(left=path_expr, op=ast.Add(), right=_query_suffix_expr())

    statements.append(ast.Assign(targets=[_store(PATH_VARIABLE)], value=path_expr))

    call_args: list[ast.expr] = [_load(PATH_VARIABLE), ast.Constant(value=plan.http_method)]
    if plan.return_type is not None:
        call_args.append(type_expr(plan.return_type))
    if plan.body is not None:
        call_args.append(_load(plan.body.name))

    helper = "_send_request" if plan.return_type is not None else "_send_request_no_content"
    call = ast.Await(
        value=ast.Call(
            func=ast.Attribute(value=_load("self"), attr=helper, ctx=ast.Load()),
            args=call_args,
            keywords=[],
        )
    )
    if plan.return_type is not None:
        statements.append(ast.Return(value=call))
        returns: ast.expr = type_expr(
            TypeRef("Optional", plan.return_type.kind, (plan.return_type,))
        )
    else:
        statements.append(ast.Expr(value=call))
        returns = ast.Constant(value=None)

    return ast.AsyncFunctionDef(
        name=plan.method_name,
        args=_method_arguments(plan),
        body=statements,
        decorator_list=[],
        returns=returns,
        type_comment=None,
        type_params=[],
    )


def type_expr(annotation: TypeRef) -> ast.expr:
    """Build an expression node for a resolved type.

    Names are placed verbatim so that unusual schema names never make
    rendering fail. Library types are qualified by their module.
    """
    module = qualified_module(annotation)
    base = _load(annotation.name) if module is None else _attribute(module, annotation.name)
    if not annotation.args:
        return base
    args = [type_expr(arg) for arg in annotation.args]
    slice_expr: ast.expr = args[0] if len(args) == 1 else ast.Tuple(elts=args, ctx=ast.Load())
    return ast.Subscript(value=base, slice=slice_expr, ctx=ast.Load())


def _model_to_ast(model: ModelDef) -> ast.ClassDef:
    class_body: list[ast.stmt] = [
        ast.Assign(
            targets=[_store("model_config")],
            value=ast.Call(
                func=_attribute("pydantic", "ConfigDict"),
                args=[],
                keywords=[ast.keyword(arg="populate_by_name", value=ast.Constant(value=True))],
            ),
        )
    ]
    for field in model.fields:
        class_body.append(_field_to_ast(field))

    return ast.ClassDef(
        name=model.name,
        bases=[_attribute("pydantic", "BaseModel")],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _field_to_ast(field: FieldDef) -> ast.AnnAssign:
    args: list[ast.expr] = []
    keywords: list[ast.keyword] = []
    if field.required:
        args.append(ast.Constant(value=Ellipsis))
    elif field.default_factory is not None:
        factory = field.default_factory
        module = TYPE_MODULES.get(factory)
        keywords.append(
            ast.keyword(
                arg="default_factory",
                value=_load(factory) if module is None else _attribute(module, factory),
            )
        )
    else:
        args.append(ast.Constant(value=None))
    keywords.append(ast.keyword(arg="alias", value=ast.Constant(value=field.source_name)))

    return ast.AnnAssign(
        target=_store(field.name),
        annotation=type_expr(field.annotation),
        value=ast.Call(func=_attribute("pydantic", "Field"), args=args, keywords=keywords),
        simple=1,
    )


def _alias_to_ast(alias: AliasDef) -> ast.TypeAlias:
    return ast.TypeAlias(
        name=_store(alias.name),
        type_params=[],
        value=type_expr(alias.annotation),
    )


def _client_to_ast(class_name: str, plans: tuple[OperationPlan, ...]) -> ast.ClassDef:
    support = ast.parse(textwrap.dedent(_CLIENT_SUPPORT_SOURCE)).body
    init, helpers = support[0], support[1:]

    class_body: list[ast.stmt] = [init]
    class_body.extend(render_method(plan) for plan in plans)
    class_body.extend(helpers)

    return ast.ClassDef(
        name=class_name,
        bases=[],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _method_arguments(plan: OperationPlan) -> ast.arguments:
    positional = [ast.arg(arg="self", annotation=None)]
    positional.extend(_argument(parameter) for parameter in plan.path_parameters)
    optional = [_argument(parameter) for parameter in plan.query_parameters]
    defaults: list[ast.expr] = [ast.Constant(value=None) for _ in plan.query_parameters]

    if plan.body is None:
        return ast.arguments(
            posonlyargs=[],
            args=[*positional, *optional],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=defaults,
        )

    body = _argument(plan.body)
    if not optional:
        return ast.arguments(
            posonlyargs=[],
            args=[*positional, body],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[],
        )

    # A required body cannot follow defaulted positional query parameters.
    return ast.arguments(
        posonlyargs=[],
        args=positional,
        vararg=None,
        kwonlyargs=[*optional, body],
        kw_defaults=[*defaults, None],
        kwarg=None,
        defaults=[],
    )


def _argument(parameter: PlannedParameter) -> ast.arg:
    return ast.arg(arg=parameter.name, annotation=type_expr(parameter.annotation))


def _path_template_expr(template: str, known_names: set[str]) -> ast.expr:
    # Placeholders without a declared path parameter stay literal text.
    values: list[ast.expr] = []
    literal_text = ""
    for literal, placeholder in split_path_template(template):
        literal_text += literal
        if placeholder is None:
            continue
        if placeholder not in known_names:
            literal_text += "{" + placeholder + "}"
            continue
        if literal_text:
            values.append(ast.Constant(value=literal_text))
            literal_text = ""
        values.append(_formatted(placeholder))

    if not values:
        return ast.Constant(value=literal_text)
    if literal_text:
        values.append(ast.Constant(value=literal_text))
    return ast.JoinedStr(values=values)


def _query_guard(parameter: PlannedParameter) -> ast.If:
    fragment = ast.JoinedStr(
        values=[ast.Constant(value=f"{parameter.source_name}="), _formatted(parameter.name)]
    )
    append = ast.Expr(
        value=ast.Call(
            func=ast.Attribute(value=_load(QUERY_VARIABLE), attr="append", ctx=ast.Load()),
            args=[fragment],
            keywords=[],
        )
    )
    return ast.If(
        test=ast.Compare(
            left=_load(parameter.name),
            ops=[ast.IsNot()],
            comparators=[ast.Constant(value=None)],
        ),
        body=[append],
        orelse=[],
    )


def _query_suffix_expr() -> ast.expr:
    joined = ast.Call(
        func=ast.Attribute(value=ast.Constant(value="&"), attr="join", ctx=ast.Load()),
        args=[_load(QUERY_VARIABLE)],
        keywords=[],
    )
    return ast.IfExp(
        test=_load(QUERY_VARIABLE),
        body=ast.BinOp(left=ast.Constant(value="?"), op=ast.Add(), right=joined),
        orelse=ast.Constant(value=""),
    )


def _formatted(name: str) -> ast.FormattedValue:
    return ast.FormattedValue(value=_load(name), conversion=-1, format_spec=None)


def _load(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Load())


def _store(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Store())


def _attribute(module: str, name: str) -> ast.Attribute:
    return ast.Attribute(value=_load(module), attr=name, ctx=ast.Load())


def _build_imports(
    *,
    definitions: tuple[Definition, ...],
    plans: tuple[OperationPlan, ...],
) -> list[ast.stmt]:
    used_modules = _collect_type_modules(definitions=definitions, plans=plans)
    # The dispatch helpers annotate with ``typing.Any``.
    used_modules.add("typing")

    stdlib = sorted(module for module in used_modules if module not in _THIRD_PARTY_MODULES)
    return [
        ast.Import(names=[ast.alias(name=module)])
        for module in (*stdlib, *_THIRD_PARTY_MODULES)
    ]


def _collect_type_modules(
    *,
    definitions: tuple[Definition, ...],
    plans: tuple[OperationPlan, ...],
) -> set[str]:
    modules: set[str] = set()
    pending = list(_iter_annotations(definitions=definitions, plans=plans))
    while pending:
        annotation = pending.pop()
        module = qualified_module(annotation)
        if module is not None:
            modules.add(module)
        pending.extend(annotation.args)

    for definition in definitions:
        if isinstance(definition, ModelDef):
            for field in definition.fields:
                if field.default_factory in TYPE_MODULES:
                    modules.add(TYPE_MODULES[field.default_factory])
    if any(plan.return_type is not None for plan in plans):
        modules.add(TYPE_MODULES["Optional"])
    return modules


def _iter_annotations(
    *,
    definitions: tuple[Definition, ...],
    plans: tuple[OperationPlan, ...],
) -> Iterable[TypeRef]:
    for definition in definitions:
        if isinstance(definition, ModelDef):
            for field in definition.fields:
                yield field.annotation
        else:
            yield definition.annotation
    for plan in plans:
        for parameter in plan.parameters:
            yield parameter.annotation
        if plan.return_type is not None:
            yield plan.return_type


def _module_docstring(options: GeneratorOptions, info: ApiInfo) -> str:
    lines: list[str] = [f"Generated API client module {options.module_name}."]
    source = " ".join(part for part in (info.title, info.version) if part)
    if source:
        lines.append("")
        lines.append(f"Source: {source}")
    if info.description:
        lines.append("")
        lines.append(info.description.strip())
    return "\n".join(lines)
