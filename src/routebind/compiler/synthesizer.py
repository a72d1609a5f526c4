from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from routebind.compiler.errors import PathTemplateError
from routebind.compiler.signature import ParsedSignature
from routebind.config import GeneratorSettings
from routebind.domain.descriptors import (
    ArgumentBinding,
    BindingForm,
    EndpointDescriptor,
    ResponseShape,
)

logger = logging.getLogger(__name__)

# {id}, {*rest}, <id>, /:id, /*rest
_PLACEHOLDER = re.compile(
    r"\{\*?(?P<brace>[A-Za-z_][A-Za-z0-9_]*)\}"
    r"|<(?P<angle>[A-Za-z_][A-Za-z0-9_]*)>"
    r"|(?<=/)[:*](?P<colon>[A-Za-z_][A-Za-z0-9_]*)"
)

_INDENT = "    "


@dataclass(frozen=True)
class ClientFunction:
    name: str
    source: str
    operation: str
    shape: ResponseShape


@dataclass(frozen=True)
class _Partition:
    body: Optional[ArgumentBinding]
    path: tuple[ArgumentBinding, ...]
    query: tuple[ArgumentBinding, ...]


def path_placeholders(template: str) -> list[str]:
    out = []
    for m in _PLACEHOLDER.finditer(template):
        out.append(m.group("brace") or m.group("angle") or m.group("colon"))
    return out


def _rust_str(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def partition_bindings(descriptor: EndpointDescriptor, bindings: tuple[ArgumentBinding, ...]) -> _Partition:
    body: Optional[ArgumentBinding] = None
    path: list[ArgumentBinding] = []
    query: list[ArgumentBinding] = []

    for b in bindings:
        if b.binding_form is BindingForm.BODY:
            if body is None:
                body = b
            else:
                logger.warning(
                    "%s::%s: ignoring extra body argument %r (only %r is sent)",
                    descriptor.module_name,
                    descriptor.handler_name,
                    b.name,
                    body.name,
                )
        elif b.binding_form is BindingForm.PATH_SEGMENT:
            path.append(b)
        else:
            query.append(b)

    return _Partition(body=body, path=tuple(path), query=tuple(query))


def build_url_expr(descriptor: EndpointDescriptor, path_bindings: tuple[ArgumentBinding, ...]) -> str:
    """
    Literal path when there are no path arguments, otherwise a format! call
    with one positional slot per placeholder, filled in declared order.
    """
    template = descriptor.path
    placeholders = path_placeholders(template)

    if len(placeholders) != len(path_bindings):
        raise PathTemplateError(
            f"path {template!r} has {len(placeholders)} placeholder(s) "
            f"but {len(path_bindings)} path argument(s)"
        )

    if not path_bindings:
        return _rust_str(template)

    names = [b.name for b in path_bindings]
    if placeholders != names:
        logger.warning(
            "%s::%s: placeholders %s differ from path arguments %s; substituting by position",
            descriptor.module_name,
            descriptor.handler_name,
            placeholders,
            names,
        )

    pieces: list[str] = []
    last = 0
    for m in _PLACEHOLDER.finditer(template):
        pieces.append(template[last : m.start()].replace("{", "{{").replace("}", "}}"))
        pieces.append("{}")
        last = m.end()
    pieces.append(template[last:].replace("{", "{{").replace("}", "}}"))

    fmt = _rust_str("".join(pieces))
    return f"&format!({fmt}, {', '.join(names)})"


def transport_operation(http_method: str, shape: ResponseShape, settings: GeneratorSettings) -> str:
    op = http_method.lower()
    if shape is ResponseShape.PAGE:
        op = f"{op}{settings.page_suffix}"
    return op


def _query_expr(query: tuple[ArgumentBinding, ...]) -> str:
    if not query:
        return "vec![]"
    pairs = ", ".join(f"({_rust_str(b.name)}, {b.name}.to_string())" for b in query)
    return f"vec![{pairs}]"


def _wrapper_expr(shape: ResponseShape, settings: GeneratorSettings) -> Optional[str]:
    if shape is ResponseShape.PAGE:
        return None
    variant = settings.single_item_variant if shape is ResponseShape.SINGLE_ITEM else settings.none_variant
    return f"{settings.wrapper_type}::{variant}"


def synthesize_client_fn(
    descriptor: EndpointDescriptor,
    parsed: ParsedSignature,
    settings: GeneratorSettings,
) -> ClientFunction:
    returns = parsed.returns
    part = partition_bindings(descriptor, parsed.bindings)

    call_args = [build_url_expr(descriptor, part.path)]

    op = transport_operation(descriptor.http_method, returns.shape, settings)

    if descriptor.http_method == "post":
        call_args.append(f"Some({part.body.name})" if part.body is not None else "None")
    elif part.body is not None:
        logger.debug(
            "%s::%s: %s requests carry no body; dropping %r",
            descriptor.module_name,
            descriptor.handler_name,
            descriptor.http_method,
            part.body.name,
        )

    call_args.append(_query_expr(part.query))

    wrapper = _wrapper_expr(returns.shape, settings)
    if wrapper is not None:
        call_args.append(wrapper)

    params = ", ".join(f"{b.name}: {b.declared_type}" for b in parsed.bindings)
    result_type = f"Result<{returns.payload_type}, {settings.error_type}>"

    lines = [
        f"pub async fn {descriptor.handler_name}({params}) -> {result_type} {{",
        f"{_INDENT}{settings.client_type}::{op}({', '.join(call_args)}).await",
        "}",
    ]
    return ClientFunction(
        name=descriptor.handler_name,
        source="\n".join(lines),
        operation=op,
        shape=returns.shape,
    )
