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
"""'modinit info' — Display version and environment information."""

from __future__ import annotations

import platform
import sys

import click
from rich.table import Table

from modinit import __version__
from modinit.cli.console import console
from modinit.generator import is_build_time


@click.command()
def info_command() -> None:
    """Display modinit and environment information."""
    console.print(f"\n[modinit]modinit[/modinit] [dim]v{__version__}[/dim]\n")

    env_table = Table(title="Environment", show_header=False, border_style="dim")
    env_table.add_column("Key", style="info")
    env_table.add_column("Value")
    env_table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    env_table.add_row("Platform", platform.platform())
    env_table.add_row("Build host", "yes" if is_build_time() else "no (interactive, generator inert)")
    console.print(env_table)
    console.print()
