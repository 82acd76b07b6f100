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
"""Shared fixtures: in-memory compilations and on-disk source trees."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from modinit.generator.source import Compilation, SourceUnit

CompileSources = Callable[..., Compilation]


def _units(sources: dict[str, str]) -> list[SourceUnit]:
    units = []
    for module, source in sources.items():
        is_package = module.endswith(".__init__")
        name = module.removesuffix(".__init__")
        units.append(SourceUnit.from_source(name, textwrap.dedent(source), is_package=is_package))
    return units


@pytest.fixture
def compile_sources() -> CompileSources:
    """Build a Compilation from ``{"pkg.mod": source}``; ``pkg.__init__`` keys are packages."""

    def build(sources: dict[str, str], search_path: list[str | Path] | None = None) -> Compilation:
        return Compilation(_units(sources), search_path=search_path)

    return build


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{"pkg/mod.py": source}`` under ``tmp_path/src`` and return that root."""

    def write(files: dict[str, str]) -> Path:
        root = tmp_path / "src"
        for relative, source in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source), encoding="utf-8")
        return root

    return write
