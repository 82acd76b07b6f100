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
"""Generator data model — candidates, resolved candidates, plan entries, output."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import PurePosixPath

from modinit.generator.source import SourceUnit


class SymbolKind(Enum):
    """What a canonical symbol key refers to."""

    MODULE = auto()
    FUNCTION = auto()
    CLASS = auto()
    VALUE = auto()


@dataclass(frozen=True)
class Symbol:
    """A declaration identified by its canonical key.

    Two names denote the same declaration exactly when their symbols share a
    ``key``; display spellings are never compared.
    """

    key: str
    kind: SymbolKind
    unit: SourceUnit = field(compare=False, repr=False)
    node: ast.AST | None = field(default=None, compare=False, repr=False)
    line: int = field(default=0, compare=False)


@dataclass(frozen=True)
class MarkerSymbol:
    """The registered startup marker and the shape of its ``priority`` parameter."""

    key: str
    priority_index: int | None
    default_priority: int
    accepts_keyword: bool = True


@dataclass(frozen=True, eq=False)
class SyntacticCandidate:
    """A function whose decorators syntactically match the marker name."""

    node: ast.FunctionDef
    unit: SourceUnit
    sequence: int
    qualname: str
    decorators: tuple[ast.expr, ...]
    enclosing: ast.ClassDef | None = None

    @property
    def location(self) -> str:
        return f"{self.unit.path}:{self.node.lineno}"


@dataclass(frozen=True, eq=False)
class ResolvedCandidate:
    """A candidate confirmed to carry exactly one application of the real marker."""

    candidate: SyntacticCandidate
    qualified_name: str
    marker: ast.expr

    @property
    def module(self) -> str:
        return self.candidate.unit.module

    @property
    def sequence(self) -> int:
        return self.candidate.sequence


@dataclass(frozen=True, order=True)
class OrderedEntry:
    """One call in the generated initializer."""

    priority: int
    qualified_name: str = field(compare=False)
    sequence: int
    module: str = field(compare=False)


@dataclass(frozen=True)
class GeneratedUnit:
    """The generated initializer module, ready to be written under the source root."""

    module_name: str
    text: str
    entries: tuple[OrderedEntry, ...]

    @property
    def path(self) -> PurePosixPath:
        """Path of the generated file relative to the source root."""
        return PurePosixPath(*self.module_name.split(".")).with_suffix(".py")
