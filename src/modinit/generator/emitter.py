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
"""Emitter — renders the generated module initializer."""

from __future__ import annotations

from collections.abc import Sequence

from jinja2 import Environment, PackageLoader

from modinit.generator.types import GeneratedUnit, OrderedEntry

AUTO_GENERATED_HEADER = "# <auto-generated/>"

ENTRY_POINT = "_initialize"

_TEMPLATE = "module_init.py.j2"


def _get_env() -> Environment:
    """Create the Jinja2 environment for the generated-module template."""
    return Environment(
        loader=PackageLoader("modinit.generator", "templates"),
        keep_trailing_newline=True,
        lstrip_blocks=True,
        trim_blocks=True,
    )


def emit(entries: Sequence[OrderedEntry], package: str, output_module: str) -> GeneratedUnit | None:
    """Render the initializer module for *package*, or ``None`` when there is nothing to call.

    Python executes a module body once per interpreter, so the call to the
    entry point at the bottom of the generated module runs exactly once,
    the first time the module is imported.
    """
    if not entries:
        return None

    text = _get_env().get_template(_TEMPLATE).render(
        header=AUTO_GENERATED_HEADER,
        package_literal=repr(package),
        modules=sorted({entry.module for entry in entries}),
        entry_point=ENTRY_POINT,
        entries=entries,
    )
    return GeneratedUnit(
        module_name=f"{package}.{output_module}" if package else output_module,
        text=text,
        entries=tuple(entries),
    )
