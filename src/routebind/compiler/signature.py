from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from routebind.compiler.errors import SignatureMismatchError
from routebind.config import GeneratorSettings
from routebind.domain.descriptors import (
    ArgumentBinding,
    BindingForm,
    EndpointDescriptor,
    ResponseShape,
    ReturnSpec,
)

logger = logging.getLogger(__name__)

# Extractor wrapper name -> binding form. Json is the original body extractor.
_NAME_WRAPPERS: dict[str, BindingForm] = {
    "Body": BindingForm.BODY,
    "Json": BindingForm.BODY,
    "Path": BindingForm.PATH_SEGMENT,
    "Query": BindingForm.QUERY_PARAM,
}


@dataclass(frozen=True)
class ParsedSignature:
    bindings: tuple[ArgumentBinding, ...]
    returns: ReturnSpec

    @property
    def argument_types(self) -> list[str]:
        return [b.declared_type for b in self.bindings]


def split_entries(raw_arguments: str) -> list[str]:
    return [e.strip() for e in (raw_arguments or "").split(";") if e.strip()]


def split_entry(entry: str) -> Optional[tuple[str, str]]:
    """
    Split "<names>:<types>" on the first ':'.

    Returns None when the entry has no usable name/type pair; callers skip it.
    """
    parts = entry.split(":", 1)
    if len(parts) != 2:
        return None
    names, types = parts[0].strip(), parts[1].strip()
    if not names or not types:
        return None
    return names, types


def _strip_wrapper(text: str, wrapper: str, open_ch: str, close_ch: str) -> Optional[str]:
    prefix = f"{wrapper}{open_ch}"
    if text.startswith(prefix) and text.endswith(close_ch):
        return text[len(prefix) : -len(close_ch)].strip()
    return None


def _split_list(inner: str) -> list[str]:
    # "(a,b)" -> ["a", "b"]; "a" -> ["a"]
    if inner.startswith("(") and inner.endswith(")"):
        inner = inner[1:-1]
        return [p.strip() for p in inner.split(",") if p.strip()]
    return [inner]


def unwrap_names(name_part: str) -> tuple[BindingForm, list[str]]:
    """Body(n) / Json(n) -> BODY, Path((a,b)) / Path(a) -> PATH_SEGMENT, rest -> QUERY_PARAM."""
    text = name_part.strip()
    for wrapper, form in _NAME_WRAPPERS.items():
        inner = _strip_wrapper(text, wrapper, "(", ")")
        if inner is None:
            continue
        if form is BindingForm.PATH_SEGMENT:
            return form, _split_list(inner)
        return form, [inner]
    return BindingForm.QUERY_PARAM, [text]


def unwrap_types(type_part: str) -> list[str]:
    """Mirror of unwrap_names for the type half: Body<T>, Path<(A,B)>, Path<A>, ..."""
    text = type_part.strip()
    for wrapper, form in _NAME_WRAPPERS.items():
        inner = _strip_wrapper(text, wrapper, "<", ">")
        if inner is None:
            continue
        if form is BindingForm.PATH_SEGMENT:
            return _split_list(inner)
        return [inner]
    return [text]


def parse_entry(entry: str) -> list[ArgumentBinding]:
    pair = split_entry(entry)
    if pair is None:
        logger.debug("Skipping argument entry without name/type pair: %r", entry)
        return []

    name_part, type_part = pair
    form, names = unwrap_names(name_part)
    types = unwrap_types(type_part)

    if len(names) != len(types):
        raise SignatureMismatchError(
            f"argument entry {entry!r} has {len(names)} name(s) but {len(types)} type(s)"
        )

    return [ArgumentBinding(name=n, declared_type=t, binding_form=form) for n, t in zip(names, types)]


def parse_arguments(raw_arguments: str) -> list[ArgumentBinding]:
    bindings: list[ArgumentBinding] = []
    for entry in split_entries(raw_arguments):
        bindings.extend(parse_entry(entry))
    return bindings


def _match_wrapper(text: str, names: Iterable[str]) -> Optional[tuple[str, str]]:
    for name in names:
        inner = _strip_wrapper(text, name, "<", ">")
        if inner:
            return name, inner
    return None


def classify_return_type(raw_return_type: str, settings: GeneratorSettings) -> ReturnSpec:
    """
    Work out the response shape from the outer wrapper of the return type.

    Page<T> -> PAGE, Json<T> / Wrapper<T> -> SINGLE_ITEM, anything else -> PLAIN.
    The inner type is what the client function resolves to.
    """
    text = (raw_return_type or "").strip() or "()"

    hit = _match_wrapper(text, settings.page_wrappers)
    if hit is not None:
        return ReturnSpec(payload_type=hit[1], shape=ResponseShape.PAGE, wrapper=hit[0])

    hit = _match_wrapper(text, settings.single_wrappers)
    if hit is not None:
        return ReturnSpec(payload_type=hit[1], shape=ResponseShape.SINGLE_ITEM, wrapper=hit[0])

    return ReturnSpec(payload_type=text, shape=ResponseShape.PLAIN)


def parse_signature(descriptor: EndpointDescriptor, settings: GeneratorSettings) -> ParsedSignature:
    return ParsedSignature(
        bindings=tuple(parse_arguments(descriptor.raw_arguments)),
        returns=classify_return_type(descriptor.raw_return_type, settings),
    )
