from __future__ import annotations

import hashlib
import re
from typing import Dict, Iterable, List

from routebind.config import GeneratorSettings
from routebind.domain.descriptors import EndpointDescriptor


_SAFE = re.compile(r"[^a-zA-Z0-9_]+")


def _sha1_short(text: str, n: int = 6) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:n]


def group_by_module(descriptors: Iterable[EndpointDescriptor]) -> Dict[str, List[EndpointDescriptor]]:
    """
    Group descriptors by module_name.

    Groups come out in first-seen order and keep registry order inside,
    so the same registry snapshot always yields the same units.
    """
    by_module: Dict[str, List[EndpointDescriptor]] = {}
    for d in descriptors:
        by_module.setdefault(d.module_name, []).append(d)
    return by_module


def _stem(module_name: str) -> str:
    # "api/product" -> "api_product"
    base = _SAFE.sub("_", module_name or "api").strip("_").lower()
    return base or "api"


def unit_filename(module_name: str, settings: GeneratorSettings) -> str:
    return f"{_stem(module_name)}{settings.file_suffix}"


def plan_filenames(module_names: Iterable[str], settings: GeneratorSettings) -> Dict[str, str]:
    """module name -> file name, collision-safe across modules with the same stem."""
    used: Dict[str, str] = {}
    out: Dict[str, str] = {}
    for module_name in module_names:
        filename = unit_filename(module_name, settings)
        if filename in used and used[filename] != module_name:
            filename = f"{_stem(module_name)}__{_sha1_short(module_name)}{settings.file_suffix}"
        used[filename] = module_name
        out[module_name] = filename
    return out
