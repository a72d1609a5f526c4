from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from routebind.compiler.errors import DescriptorError, OutputError
from routebind.compiler.imports import prune_imports
from routebind.compiler.signature import parse_signature
from routebind.config import GeneratorSettings
from routebind.domain.descriptors import EndpointDescriptor
from routebind.manifest.normalize import load_manifest
from routebind.orchestrator.pipeline import run_generate, write_units
from routebind.orchestrator.plan import plan_filenames
from routebind.registry.registry import default_registry


app = typer.Typer(no_args_is_help=True, add_completion=False)

endpoints_app = typer.Typer(no_args_is_help=True)
app.add_typer(endpoints_app, name="endpoints")

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_options(
    log_level: Optional[str] = typer.Option(None, help="Log level (default: ROUTEBIND_LOG_LEVEL or WARNING)"),
) -> None:
    _setup_logging(log_level or GeneratorSettings().log_level)


def _load(manifest: Optional[str]) -> list[EndpointDescriptor]:
    if manifest is None or manifest == "-":
        return []
    path = Path(manifest).expanduser().resolve()
    if not path.is_file():
        raise typer.BadParameter(f"Manifest does not exist: {path}")
    try:
        return load_manifest(path)
    except ValidationError as e:
        raise typer.BadParameter(f"Invalid manifest {path}:\n{e}") from e
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


@app.command()
def generate(
    manifest: Optional[str] = typer.Argument(None, help="JSON manifest of descriptors ('-' for none)"),
    out: Optional[str] = typer.Option(None, help="Output directory (default: ROUTEBIND_OUTPUT_DIR)"),
    provider: Optional[List[str]] = typer.Option(
        None, "--provider", "-p", help="Provider module to import before generating (repeatable)"
    ),
    strict: bool = typer.Option(False, help="Exit with code 1 if any descriptor fails"),
    dry_run: bool = typer.Option(False, help="Print generated sources instead of writing files"),
) -> None:
    settings = GeneratorSettings()
    descriptors = _load(manifest)

    if provider:
        default_registry.bootstrap(provider)
        descriptors.extend(default_registry.all())

    if not descriptors:
        raise typer.BadParameter("No descriptors: pass a manifest and/or --provider modules")

    result = run_generate(descriptors, settings=settings)

    if dry_run:
        for u in result.units:
            console.rule(f"[bold]{u.module_name}[/bold]")
            console.print(u.source, markup=False, highlight=False, soft_wrap=True)
    else:
        out_dir = Path(out or settings.output_dir).expanduser()
        try:
            written = write_units(result.units, out_dir, settings=settings)
        except OutputError as e:
            console.print(f"[bold red]Output error:[/bold red] {e}")
            raise typer.Exit(code=2)
        console.print(f"[bold green]routebind[/bold green] wrote {len(written)} file(s) to: {out_dir}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("MODULE", no_wrap=True)
    table.add_column("FILE")
    table.add_column("FUNCTIONS", justify="right")
    names = plan_filenames([u.module_name for u in result.units], settings)
    for u in result.units:
        table.add_row(u.module_name, names[u.module_name], str(len(u.functions)))
    console.print(table)

    if result.diagnostics:
        console.print(f"[bold yellow]{len(result.diagnostics)} descriptor(s) failed:[/bold yellow]")
        for d in result.diagnostics:
            console.print(f"  {d.module_name}::{d.handler_name}: {d.message}", markup=False)
        if strict:
            raise typer.Exit(code=1)


@endpoints_app.command("list")
def endpoints_list(
    manifest: str = typer.Argument(..., help="JSON manifest of descriptors"),
    module: Optional[str] = typer.Option(None, help="Filter by module name"),
    method: Optional[str] = typer.Option(None, help="Filter by HTTP method (get/post/...)"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    descriptors = _load(manifest)
    if module:
        descriptors = [d for d in descriptors if d.module_name == module]
    if method:
        descriptors = [d for d in descriptors if d.http_method == method.lower()]

    if format.lower() == "json":
        rows = [
            {
                "module_name": d.module_name,
                "http_method": d.http_method,
                "path": d.path,
                "handler_name": d.handler_name,
                "raw_arguments": d.raw_arguments,
                "raw_return_type": d.raw_return_type,
                "import_statements": list(d.import_statements),
            }
            for d in descriptors
        ]
        console.print(json.dumps(rows, indent=2), markup=False, highlight=False, soft_wrap=True)
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("MODULE", no_wrap=True)
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("HANDLER")
    table.add_column("RETURNS")
    for d in descriptors:
        table.add_row(d.module_name, d.http_method.upper(), d.path, d.handler_name, d.raw_return_type)
    console.print(table)


@endpoints_app.command("show")
def endpoints_show(
    manifest: str = typer.Argument(..., help="JSON manifest of descriptors"),
    handler: str = typer.Argument(..., help="Handler name"),
) -> None:
    settings = GeneratorSettings()
    matches = [d for d in _load(manifest) if d.handler_name == handler]
    if not matches:
        raise typer.BadParameter(f"No descriptor with handler {handler!r}")

    for d in matches:
        console.print(f"[bold]{d.http_method.upper()} {d.path}[/bold] -> {d.module_name}::{d.handler_name}")
        try:
            parsed = parse_signature(d, settings)
        except DescriptorError as e:
            console.print(f"  [red]error:[/red] {e.message}")
            continue

        table = Table(show_header=True, header_style="bold")
        table.add_column("ARG")
        table.add_column("TYPE")
        table.add_column("BINDING", no_wrap=True)
        for b in parsed.bindings:
            table.add_row(b.name, b.declared_type, b.binding_form.value)
        console.print(table)

        console.print(f"Returns: {parsed.returns.payload_type} ({parsed.returns.shape.value})", markup=False)
        imports = prune_imports(
            d.import_statements,
            parsed.argument_types,
            parsed.returns.payload_type,
            deny=settings.denied_imports,
        )
        console.print(f"Imports: {', '.join(imports) or '-'}", markup=False, soft_wrap=True)


@app.command()
def ping() -> None:
    console.print("pong")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
