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
"""modinit CLI — generate and inspect module initializers."""

from __future__ import annotations

import click

from modinit.cli.console import print_banner


class ModInitCLI(click.Group):
    """Custom Click group that shows the banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=ModInitCLI)
@click.version_option(package_name="modinit")
def cli() -> None:
    """modinit — build-time generated, ordered startup calls."""


from modinit.cli.generate import generate_command  # noqa: E402
from modinit.cli.info import info_command  # noqa: E402
from modinit.cli.plan import plan_command  # noqa: E402

cli.add_command(generate_command, name="generate")
cli.add_command(plan_command, name="plan")
cli.add_command(info_command, name="info")
