from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Iterable, List

from routebind.domain.descriptors import EndpointDescriptor
from routebind.domain.models import DescriptorEntry, DescriptorManifest


_PARAM_ANGLE = re.compile(r"<([A-Za-z_][A-Za-z0-9_]*)>")
_PARAM_COLON = re.compile(r"(?<=/):([A-Za-z_][A-Za-z0-9_]*)")


def _normalize_path(path: str) -> str:
    p = (path or "").strip()
    if not p.startswith("/"):
        p = "/" + p

    # normalize common param styles into "{param}"
    p = _PARAM_ANGLE.sub(r"{\1}", p)     # <id> -> {id}
    p = _PARAM_COLON.sub(r"{\1}", p)     # :id  -> {id}

    # the rest is the URL the client calls verbatim; no slash cleanup
    return p


def _fallback_handler(method: str, path: str) -> str:
    # deterministic fallback if handler missing
    # e.g. get /users/{id} -> get_users_by_id
    tokens = []
    for seg in path.strip("/").split("/"):
        if not seg:
            continue
        if seg.startswith("{") and seg.endswith("}"):
            tokens.append(f"by_{seg[1:-1]}")
        else:
            tokens.append(re.sub(r"[^A-Za-z0-9_]+", "_", seg))
    base = "_".join(tokens) if tokens else "root"
    return f"{method.lower()}_{base}"


def normalize_entries(entries: Iterable[DescriptorEntry], default_module: str = "api") -> List[EndpointDescriptor]:
    """
    Convert validated manifest entries into descriptors.

    Order is kept as given: it is the registration order.
    """
    out: list[EndpointDescriptor] = []
    for e in entries:
        path = _normalize_path(e.path)
        handler = e.handler_name.strip() or _fallback_handler(e.http_method, path)
        out.append(
            EndpointDescriptor.create(
                module_name=e.module_name.strip() or default_module,
                path=path,
                http_method=e.http_method,
                handler_name=handler,
                raw_arguments=e.raw_arguments,
                raw_return_type=e.raw_return_type,
                import_statements=e.import_statements,
            )
        )
    return out


def parse_manifest(data: Any, default_module: str = "api") -> List[EndpointDescriptor]:
    """Accepts a list of descriptor objects or {"descriptors": [...]}."""
    if isinstance(data, list):
        data = {"descriptors": data}
    manifest = DescriptorManifest.model_validate(data)
    return normalize_entries(manifest.descriptors, default_module=default_module)


def load_manifest(path: Path) -> List[EndpointDescriptor]:
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Manifest is not valid JSON: {path}: {e}") from e
    # descriptors without a module fall into a unit named after the manifest
    return parse_manifest(data, default_module=path.stem)
