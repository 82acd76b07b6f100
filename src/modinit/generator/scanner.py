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
"""Candidate scanner — syntactic discovery of marked functions."""

from __future__ import annotations

import ast
from collections.abc import Iterable

import structlog

from modinit.generator.names import decorator_target, dotted_name, mangle, runs_on_import
from modinit.generator.source import SourceUnit
from modinit.generator.types import SyntacticCandidate

logger = structlog.get_logger(__name__)

_STATICMETHOD_NAMES = frozenset({"staticmethod", "builtins.staticmethod"})


class MarkerNameMatcher:
    """Matches decorator spellings against the marker name, without resolving them.

    Accepted: the short name, the suffixed name, and any dotted name ending in
    ``.<short>`` or ``.<short><suffix>``.
    """

    def __init__(self, short_name: str, suffix: str = "") -> None:
        self.short_name = short_name
        self.suffixed_name = short_name + suffix
        self._names = frozenset({self.short_name, self.suffixed_name})

    def matches(self, decorator: ast.expr) -> bool:
        name = dotted_name(decorator_target(decorator))
        if name is None:
            return False
        if name in self._names:
            return True
        return name.endswith("." + self.short_name) or name.endswith("." + self.suffixed_name)


class CandidateScanner(ast.NodeVisitor):
    """Walks source units in order and collects marked, static, non-generic functions.

    Function bodies are not entered: functions nested in functions cannot
    be called from the generated initializer. Nothing is rejected on
    semantic grounds here.
    """

    def __init__(self, matcher: MarkerNameMatcher) -> None:
        self._matcher = matcher
        self._candidates: list[SyntacticCandidate] = []
        self._classes: list[tuple[ast.ClassDef, str]] = []
        self._unit: SourceUnit | None = None

    def scan(self, units: Iterable[SourceUnit]) -> list[SyntacticCandidate]:
        """Return the candidates of *units* in discovery order."""
        self._candidates = []
        for unit in units:
            self._unit = unit
            self._classes = []
            self.visit(unit.tree)
        self._unit = None
        return list(self._candidates)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        # (class node, attribute name on the enclosing scope)
        self._classes.append((node, mangle(node.name, self._enclosing_class())))
        for statement in node.body:
            self.visit(statement)
        self._classes.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        decorators = tuple(d for d in node.decorator_list if self._matcher.matches(d))
        if not decorators:
            return

        assert self._unit is not None
        reason = self._shape_problem(node)
        if reason is not None:
            logger.debug(
                "candidate_skipped", function=node.name, reason=reason, path=str(self._unit.path), line=node.lineno
            )
            return

        path = [attribute for _node, attribute in self._classes]
        qualname = ".".join([*path, mangle(node.name, self._enclosing_class())])
        self._candidates.append(
            SyntacticCandidate(
                node=node,
                unit=self._unit,
                sequence=len(self._candidates),
                qualname=qualname,
                decorators=decorators,
                enclosing=self._classes[-1][0] if self._classes else None,
            )
        )

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        if any(self._matcher.matches(d) for d in node.decorator_list):
            logger.debug("candidate_skipped", function=node.name, reason="coroutine function", line=node.lineno)

    def visit_If(self, node: ast.If) -> None:
        if runs_on_import(node.test):
            self.generic_visit(node)
            return
        logger.debug("block_skipped", test=ast.unparse(node.test), line=node.lineno)
        for statement in node.orelse:
            self.visit(statement)

    def visit_Lambda(self, node: ast.Lambda) -> None:
        return

    def _enclosing_class(self) -> str | None:
        return self._classes[-1][0].name if self._classes else None

    def _shape_problem(self, node: ast.FunctionDef) -> str | None:
        if getattr(node, "type_params", None):
            return "generic function"
        if self._classes and not any(
            dotted_name(decorator_target(d)) in _STATICMETHOD_NAMES for d in node.decorator_list
        ):
            return "not a static method"
        args = node.args
        positional = [*args.posonlyargs, *args.args]
        if len(positional) > len(args.defaults):
            return "has required positional parameters"
        if any(default is None for default in args.kw_defaults):
            return "has required keyword-only parameters"
        return None
