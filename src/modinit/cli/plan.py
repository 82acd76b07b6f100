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
"""'modinit plan' — show the startup call order without writing anything."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from modinit.cli.console import console
from modinit.cli.generate import build_generator, load_compilation, load_config, source_options
from modinit.kernel.exceptions import ModInitException


@click.command()
@source_options
def plan_command(
    source_root: Path,
    package: str | None,
    project_dir: Path,
    config_file: Path | None,
    profiles: tuple[str, ...],
    verbose: int,
) -> None:
    """Show the order startup functions under SOURCE_ROOT will be called in."""
    config = load_config(project_dir, config_file, profiles, verbose)
    generator = build_generator(config)
    compilation = load_compilation(source_root, generator.properties)

    try:
        plan = generator.plan(compilation)
    except ModInitException as exc:
        console.print(f"[error]Planning failed:[/error] {exc}")
        raise SystemExit(1) from exc

    if package is not None:
        plan = tuple(entry for entry in plan if entry.module == package or entry.module.startswith(package + "."))

    if not plan:
        console.print("[dim]No startup functions found.[/dim]")
        return

    table = Table(title="[modinit]Startup order[/modinit]", border_style="dim")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Priority", justify="right", style="info")
    table.add_column("Function", style="bold")
    table.add_column("Discovered", justify="right", style="dim")
    for position, entry in enumerate(plan, start=1):
        table.add_row(str(position), str(entry.priority), entry.qualified_name, str(entry.sequence))

    console.print(table)
