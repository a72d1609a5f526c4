from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from routebind.compiler.errors import DescriptorError, OutputError
from routebind.compiler.imports import prune_imports
from routebind.compiler.signature import parse_signature
from routebind.compiler.synthesizer import ClientFunction, synthesize_client_fn
from routebind.config import GeneratorSettings
from routebind.domain.descriptors import EndpointDescriptor
from routebind.orchestrator.plan import group_by_module, plan_filenames
from routebind.registry.registry import DescriptorRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    module_name: str
    handler_name: str
    message: str


@dataclass(frozen=True)
class CompiledEndpoint:
    descriptor: EndpointDescriptor
    function: ClientFunction
    imports: tuple[str, ...]


@dataclass(frozen=True)
class EmissionUnit:
    module_name: str
    source: str
    functions: tuple[str, ...]
    imports: tuple[str, ...]


@dataclass(frozen=True)
class GenerateResult:
    units: list[EmissionUnit]
    diagnostics: list[Diagnostic]
    descriptors_seen: int

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def source_by_module(self) -> dict[str, str]:
        return {u.module_name: u.source for u in self.units}


def compile_descriptor(descriptor: EndpointDescriptor, settings: GeneratorSettings) -> CompiledEndpoint:
    """parse -> prune -> synthesize for one descriptor. Raises DescriptorError."""
    try:
        parsed = parse_signature(descriptor, settings)
        imports = prune_imports(
            descriptor.import_statements,
            parsed.argument_types,
            parsed.returns.payload_type,
            deny=settings.denied_imports,
        )
        function = synthesize_client_fn(descriptor, parsed, settings)
    except DescriptorError as e:
        e.with_key(descriptor.key)
        raise
    return CompiledEndpoint(descriptor=descriptor, function=function, imports=tuple(imports))


def render_unit(module_name: str, compiled: list[CompiledEndpoint], settings: GeneratorSettings) -> EmissionUnit:
    infra = list(settings.infrastructure_imports)

    seen = set(infra)
    extra: set[str] = set()
    for c in compiled:
        extra.update(i for i in c.imports if i not in seen)
    imports = infra + sorted(extra)

    header = "\n".join(f"use {i};" for i in imports)
    functions = [c.function.source for c in compiled]
    source = header + "\n\n" + "\n\n".join(functions) + "\n"

    return EmissionUnit(
        module_name=module_name,
        source=source,
        functions=tuple(c.function.name for c in compiled),
        imports=tuple(imports),
    )


def run_generate(
    descriptors: Iterable[EndpointDescriptor],
    settings: Optional[GeneratorSettings] = None,
) -> GenerateResult:
    settings = settings or GeneratorSettings()
    descriptors = list(descriptors)

    units: list[EmissionUnit] = []
    diagnostics: list[Diagnostic] = []

    for module_name, group in group_by_module(descriptors).items():
        compiled: list[CompiledEndpoint] = []
        for d in group:
            try:
                compiled.append(compile_descriptor(d, settings))
            except DescriptorError as e:
                logger.warning("Skipping %s", e)
                diagnostics.append(
                    Diagnostic(module_name=d.module_name, handler_name=d.handler_name, message=e.message)
                )

        if not compiled:
            logger.warning("Module %r produced no client functions", module_name)
            continue
        units.append(render_unit(module_name, compiled, settings))

    logger.info(
        "Generated %d unit(s) from %d descriptor(s), %d failed",
        len(units),
        len(descriptors),
        len(diagnostics),
    )
    return GenerateResult(units=units, diagnostics=diagnostics, descriptors_seen=len(descriptors))


def generate_from_registry(
    registry: Optional[DescriptorRegistry] = None,
    settings: Optional[GeneratorSettings] = None,
) -> GenerateResult:
    if registry is None:
        registry = default_registry
    return run_generate(registry.all(), settings=settings)


def write_units(
    units: Iterable[EmissionUnit],
    out_dir: Path,
    settings: Optional[GeneratorSettings] = None,
) -> list[Path]:
    """Write one file per unit into out_dir. Filesystem failures raise OutputError."""
    settings = settings or GeneratorSettings()
    units = list(units)
    names = plan_filenames([u.module_name for u in units], settings)

    written: list[Path] = []
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        for u in units:
            target = out_dir / names[u.module_name]
            target.write_text(u.source, encoding="utf-8")
            written.append(target)
    except OSError as e:
        raise OutputError(f"could not write generated clients to {out_dir}: {e}") from e
    return written
