# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""'modinit generate' — write the module initializer for a source tree."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from modinit.cli.console import console
from modinit.config.properties.generator import GeneratorProperties
from modinit.core.config import Config
from modinit.generator import AUTO_GENERATED_HEADER, Compilation, ModuleInitGenerator, is_build_time
from modinit.kernel.exceptions import ModInitException
from modinit.logging import LoggingPort, StructlogAdapter

F = TypeVar("F", bound=Callable[..., Any])


def load_config(
    project_dir: Path,
    config_file: Path | None,
    profiles: tuple[str, ...],
    verbose: int,
    logging_port: LoggingPort | None = None,
) -> Config:
    """Load configuration and set up logging for a CLI run.

    *logging_port* defaults to :class:`StructlogAdapter`.
    """
    if config_file is not None:
        config = Config.from_file(config_file, active_profiles=list(profiles))
    else:
        config = Config.from_sources(project_dir, active_profiles=list(profiles))

    port: LoggingPort = logging_port if logging_port is not None else StructlogAdapter()
    try:
        port.configure(config)
    except ValueError as exc:
        console.print(f"[error]{exc}[/error]")
        raise SystemExit(1) from exc
    if verbose:
        port.set_level("modinit", "DEBUG" if verbose > 1 else "INFO")
    return config


def build_generator(config: Config) -> ModuleInitGenerator:
    try:
        return ModuleInitGenerator.from_config(config)
    except ValueError as exc:
        console.print(f"[error]{exc}[/error]")
        raise SystemExit(1) from exc


def load_compilation(source_root: Path, properties: GeneratorProperties) -> Compilation:
    try:
        return Compilation.from_directory(source_root, exclude=properties.exclude)
    except ModInitException as exc:
        console.print(f"[error]{exc}[/error]")
        raise SystemExit(1) from exc


def resolve_package(compilation: Compilation, package: str | None) -> str:
    """The package the initializer is written into: *package*, or the only top-level package."""
    if package is not None:
        unit = compilation.get_unit(package)
        if unit is None or not unit.is_package:
            console.print(f"[error]'{package}' is not a package under the source root.[/error]")
            raise SystemExit(1)
        return package

    top_level = sorted(unit.module for unit in compilation.units if unit.is_package and "." not in unit.module)
    if len(top_level) != 1:
        found = ", ".join(top_level) if top_level else "none"
        console.print(f"[error]Cannot choose a target package (top-level packages: {found}).[/error]")
        console.print("[dim]Pass --package to select one.[/dim]")
        raise SystemExit(1)
    return top_level[0]


def source_options(func: F) -> F:
    """Options shared by commands that analyse a source tree."""
    func = click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug detail).")(func)
    func = click.option("--profile", "profiles", multiple=True, help="Configuration profile to activate.")(func)
    func = click.option(
        "--config",
        "config_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="Configuration file (default: modinit.yaml / pyproject.toml in the project directory).",
    )(func)
    func = click.option(
        "--project-dir",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=Path("."),
        show_default=True,
        help="Directory searched for configuration files.",
    )(func)
    func = click.option("--package", "-p", default=None, help="Package to place the initializer in.")(func)
    func = click.argument("source_root", type=click.Path(exists=True, file_okay=False, path_type=Path))(func)
    return func


@click.command()
@source_options
@click.option("--dry-run", is_flag=True, help="Print the generated module instead of writing it.")
def generate_command(
    source_root: Path,
    package: str | None,
    project_dir: Path,
    config_file: Path | None,
    profiles: tuple[str, ...],
    verbose: int,
    dry_run: bool,
) -> None:
    """Generate the module initializer for SOURCE_ROOT."""
    config = load_config(project_dir, config_file, profiles, verbose)
    generator = build_generator(config)
    compilation = load_compilation(source_root, generator.properties)
    target_package = resolve_package(compilation, package)

    if not generator.properties.enabled or not is_build_time():
        console.print("[warning]Generator is disabled or not running as part of a build; nothing written.[/warning]")
        return

    try:
        unit = generator.execute(compilation, target_package)
    except ModInitException as exc:
        console.print(f"[error]Module initializer generation failed:[/error] {exc}")
        raise SystemExit(1) from exc

    if unit is None:
        output_path = source_root.joinpath(*target_package.split("."), f"{generator.properties.output_module}.py")
        if _is_generated(output_path) and not dry_run:
            output_path.unlink()
            console.print(f"[warning]Removed stale initializer[/warning] {output_path}")
        console.print("[dim]Nothing to initialize; no module generated.[/dim]")
        return

    if dry_run:
        click.echo(unit.text, nl=False)
        return

    output_path = source_root / unit.path
    output_path.write_text(unit.text, encoding="utf-8", newline="\n")
    console.print(f"[success]✓[/success] Wrote {output_path} [dim]({len(unit.entries)} calls)[/dim]")


def _is_generated(path: Path) -> bool:
    if not path.is_file():
        return False
    try:
        with open(path, encoding="utf-8") as f:
            return f.readline().rstrip("\n") == AUTO_GENERATED_HEADER
    except UnicodeDecodeError:
        return False
