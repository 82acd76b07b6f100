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
"""Source units and the compilation — the parsed view of a program the generator analyses."""

from __future__ import annotations

import ast
import fnmatch
import importlib.util
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from modinit.kernel.exceptions import SourceUnitError

logger = structlog.get_logger(__name__)

_SKIPPED_DIRS = frozenset({"__pycache__", "build", "dist", "node_modules"})


@dataclass(frozen=True, eq=False)
class SourceUnit:
    """One parsed Python module."""

    module: str
    path: Path
    tree: ast.Module = field(repr=False)
    is_package: bool = False

    @property
    def package(self) -> str:
        """The package relative imports in this unit are resolved against."""
        if self.is_package:
            return self.module
        return self.module.rpartition(".")[0]

    @classmethod
    def from_source(
        cls,
        module: str,
        source: str,
        path: str | Path | None = None,
        is_package: bool = False,
    ) -> SourceUnit:
        """Parse *source* as module *module*."""
        path = Path(path) if path is not None else Path(*module.split(".")).with_suffix(".py")
        try:
            tree = ast.parse(source, filename=str(path))
        except SyntaxError as exc:
            raise SourceUnitError(str(path), f"line {exc.lineno}: {exc.msg}") from exc
        return cls(module=module, path=path, tree=tree, is_package=is_package)

    @classmethod
    def from_path(cls, path: Path, module: str, is_package: bool = False) -> SourceUnit:
        """Read and parse the file at *path*."""
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnitError(str(path), str(exc)) from exc
        return cls.from_source(module, source, path=path, is_package=is_package)


class Compilation:
    """The set of source units being built, plus the path referenced modules live on.

    Units outside the compilation (the marker's own package, third-party
    libraries) are located by :meth:`load_reference` on demand. Nothing is
    cached here: a resolver caches what it loads for the duration of one run.
    """

    def __init__(self, units: Iterable[SourceUnit], search_path: Sequence[str | Path] | None = None) -> None:
        self._units: dict[str, SourceUnit] = {}
        for unit in units:
            if unit.module in self._units:
                existing = self._units[unit.module].path
                raise SourceUnitError(str(unit.path), f"module '{unit.module}' is already defined by {existing}")
            self._units[unit.module] = unit
        self._search_path = [Path(p) for p in (sys.path if search_path is None else search_path) if str(p)]

    @property
    def units(self) -> tuple[SourceUnit, ...]:
        """Units in ascending module-name order — the scan order."""
        return tuple(self._units[name] for name in sorted(self._units))

    @property
    def search_path(self) -> list[Path]:
        return list(self._search_path)

    def get_unit(self, module: str) -> SourceUnit | None:
        return self._units.get(module)

    @classmethod
    def from_directory(
        cls,
        root: str | Path,
        exclude: Sequence[str] = (),
        search_path: Sequence[str | Path] | None = None,
    ) -> Compilation:
        """Parse every importable ``*.py`` file under *root*.

        Module names are derived from paths relative to *root*, so *root*
        should be the directory placed on ``sys.path`` (e.g. ``src/``).
        *exclude* holds glob patterns matched against the relative POSIX path.
        """
        root = Path(root)
        units: list[SourceUnit] = []
        for path in sorted(root.rglob("*.py")):
            relative = path.relative_to(root)
            if any(fnmatch.fnmatch(relative.as_posix(), pattern) for pattern in exclude):
                logger.debug("source_excluded", path=relative.as_posix())
                continue
            parts = list(relative.with_suffix("").parts)
            if any(part in _SKIPPED_DIRS or not part.isidentifier() for part in parts):
                continue
            is_package = parts[-1] == "__init__"
            if is_package:
                parts.pop()
                if not parts:
                    continue
            units.append(SourceUnit.from_path(path, ".".join(parts), is_package=is_package))

        if search_path is None:
            search_path = [root, *sys.path]
        logger.debug("compilation_loaded", root=str(root), units=len(units))
        return cls(units, search_path=search_path)

    def load_reference(self, module: str) -> SourceUnit | None:
        """Locate and parse a module that is not part of the compilation.

        The search path is searched on the filesystem; nothing is imported. A
        module whose parent package is already imported (e.g. modinit
        itself under an editable install) is located through importlib.
        """
        parts = module.split(".")
        if not all(part.isidentifier() for part in parts):
            return None

        for base in self._search_path:
            as_package = base.joinpath(*parts, "__init__.py")
            if as_package.is_file():
                return self._parse_reference(as_package, module, is_package=True)
            as_module = base.joinpath(*parts[:-1], parts[-1] + ".py")
            if as_module.is_file():
                return self._parse_reference(as_module, module, is_package=False)

        parent = ".".join(parts[:-1])
        if not parent or parent in sys.modules:
            try:
                spec = importlib.util.find_spec(module)
            except (ImportError, ValueError):
                return None
            if spec is not None and spec.origin and spec.origin.endswith(".py"):
                origin = Path(spec.origin)
                return self._parse_reference(origin, module, is_package=origin.name == "__init__.py")
        return None

    @staticmethod
    def _parse_reference(path: Path, module: str, is_package: bool) -> SourceUnit | None:
        try:
            return SourceUnit.from_path(path, module, is_package=is_package)
        except SourceUnitError as exc:
            logger.debug("reference_unreadable", module=module, reason=exc.reason)
            return None
