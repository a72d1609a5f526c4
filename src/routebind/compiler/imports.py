from __future__ import annotations

import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

# identifiers, optionally ::-qualified: Product, model::Product, Vec
_TYPE_TOKEN = re.compile(r"\b[a-zA-Z_][a-zA-Z0-9_]*(?:::[a-zA-Z_][a-zA-Z0-9_]*)*\b")
_WS = re.compile(r"\s+")
_ALIAS = re.compile(r"^(?P<path>.+?)\s+as\s+(?P<alias>[A-Za-z_][A-Za-z0-9_]*)$")


def _strip_use(statement: str) -> str:
    s = statement.strip().rstrip(";").strip()
    if s.startswith("use "):
        s = s[4:]
    elif s.startswith("pub use "):
        s = s[8:]
    return s.strip()


def _entry(path: str) -> tuple[str, str]:
    """One import path -> (symbol key, normalized path)."""
    m = _ALIAS.match(path.strip())
    if m:
        full = _WS.sub("", m.group("path"))
        return m.group("alias"), f"{full} as {m.group('alias')}"
    full = _WS.sub("", path)
    return full.split("::")[-1], full


def _split_top_level(items: str) -> list[str]:
    # commas inside a nested {...} belong to that group
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(items):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(items[start:i])
            start = i + 1
    parts.append(items[start:])
    return [p.strip() for p in parts if p.strip()]


def _expand(body: str, out: dict[str, str]) -> None:
    if "{" not in body:
        key, full = _entry(body)
        if key:
            out[key] = full
        return

    prefix, _, items = body.partition("{")
    prefix = _WS.sub("", prefix)
    items = items.rsplit("}", 1)[0]
    for item in _split_top_level(items):
        if item == "self":
            # a::b::{self, C} imports the module a::b itself
            key, full = _entry(prefix.rstrip(":"))
            if key:
                out[key] = full
        else:
            _expand(f"{prefix}{item}", out)


def imports_to_map(statements: Iterable[str]) -> dict[str, str]:
    """
    Map each imported symbol to the import path that brings it in.

      a::B                    -> {"B": "a::B"}
      use a::{C, d::D};       -> {"C": "a::C", "D": "a::d::D"}
      use a::{b::{C, D}, E};  -> {"C": "a::b::C", "D": "a::b::D", "E": "a::E"}
      a::B as X               -> {"X": "a::B as X"}
    """
    out: dict[str, str] = {}
    for statement in statements:
        body = _strip_use(statement)
        if body:
            _expand(body, out)
    return out


def extract_type_tokens(text: str) -> set[str]:
    return set(_TYPE_TOKEN.findall(text or ""))


def prune_imports(
    statements: Iterable[str],
    argument_types: Iterable[str],
    return_type: str,
    deny: Iterable[str] = (),
) -> list[str]:
    """
    Keep only the imports whose symbol shows up in the signature types.

    Returns normalized import paths (no `use`, no `;`), sorted for stable output.
    """
    symbols = imports_to_map(statements)
    denied = set(deny)

    used: set[str] = set()
    for t in argument_types:
        used |= extract_type_tokens(t)
    used |= extract_type_tokens(return_type)

    kept: set[str] = set()
    for token in used:
        if token in denied:
            continue
        full = symbols.get(token)
        if full is None:
            continue
        kept.add(full)

    dropped = len(symbols) - len(kept)
    if dropped:
        logger.debug("Pruned %d unused import(s)", dropped)
    return sorted(kept)
