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
"""Priority extractor — reads the priority a marker application declares."""

from __future__ import annotations

import ast
import operator
from collections.abc import Callable
from typing import NoReturn

from modinit.generator.resolver import SymbolResolver
from modinit.generator.source import SourceUnit
from modinit.generator.types import MarkerSymbol, ResolvedCandidate, SymbolKind
from modinit.kernel.exceptions import MalformedPriorityError
from modinit.marker import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE

_MAX_DEPTH = 32

_UNARY: dict[type[ast.unaryop], Callable[[int], int]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}
_MAX_EXPONENT = 64


def _bounded_pow(base: int, exponent: int) -> int:
    if not 0 <= exponent <= _MAX_EXPONENT:
        raise ValueError(f"exponent {exponent} is out of range")
    return base**exponent


_BINARY: dict[type[ast.operator], Callable[[int, int], int]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Pow: _bounded_pow,
}


class PriorityExtractor:
    """Evaluates the ``priority`` argument of a marker application as a build-time constant.

    Accepted: int literals, unary ``+``/``-``, binary ``+``/``-``/``*``/``**`` and
    names bound to such constants at module or class level, e.g.
    ``HIGHEST_PRECEDENCE + 1``. Everything else is malformed.
    """

    def __init__(self, resolver: SymbolResolver, marker: MarkerSymbol) -> None:
        self._resolver = resolver
        self._marker = marker

    def extract(self, candidate: ResolvedCandidate) -> int:
        decorator = candidate.marker
        if not isinstance(decorator, ast.Call):
            return self._marker.default_priority

        argument = self._priority_argument(decorator, candidate)
        if argument is None:
            return self._marker.default_priority

        syntactic = candidate.candidate
        scope = None
        if syntactic.enclosing is not None:
            scope = (syntactic.enclosing, candidate.qualified_name.rpartition(".")[0])
        value = self._evaluate(argument, syntactic.unit, candidate, depth=0, scope=scope)
        if not HIGHEST_PRECEDENCE <= value <= LOWEST_PRECEDENCE:
            self._fail(candidate, f"{value} is outside the 32-bit range", argument)
        return value

    def _priority_argument(self, call: ast.Call, candidate: ResolvedCandidate) -> ast.expr | None:
        positional: ast.expr | None = None
        keyword: ast.expr | None = None

        if any(isinstance(arg, ast.Starred) for arg in call.args):
            self._fail(candidate, "star-arguments are not allowed", call)
        if call.args:
            if self._marker.priority_index != 0 or len(call.args) > 1:
                self._fail(candidate, f"unexpected positional arguments ({len(call.args)})", call)
            positional = call.args[0]

        for kw in call.keywords:
            if kw.arg is None:
                self._fail(candidate, "**kwargs are not allowed", call)
            if kw.arg != "priority" or not self._marker.accepts_keyword:
                self._fail(candidate, f"unexpected keyword argument '{kw.arg}'", call)
            keyword = kw.value

        if positional is not None and keyword is not None:
            self._fail(candidate, "priority given both positionally and by keyword", call)
        return positional if positional is not None else keyword

    def _evaluate(
        self,
        node: ast.AST,
        unit: SourceUnit,
        candidate: ResolvedCandidate,
        depth: int,
        line: int | None = None,
        scope: tuple[ast.ClassDef, str] | None = None,
    ) -> int:
        if depth > _MAX_DEPTH:
            self._fail(candidate, "constant definition is too deeply nested", node)

        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, int):
                self._fail(candidate, f"expected an int, got {node.value!r}", node)
            return node.value
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY:
            return _UNARY[type(node.op)](self._evaluate(node.operand, unit, candidate, depth + 1, line, scope))
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY:
            left = self._evaluate(node.left, unit, candidate, depth + 1, line, scope)
            right = self._evaluate(node.right, unit, candidate, depth + 1, line, scope)
            try:
                return _BINARY[type(node.op)](left, right)
            except ValueError as exc:
                self._fail(candidate, str(exc), node)
        if isinstance(node, (ast.Name, ast.Attribute)):
            at = line if line is not None else getattr(node, "lineno", None)
            scope_node, scope_key = scope if scope is not None else (None, None)
            symbol = self._resolver.resolve_expression(node, unit, line=at, scope=scope_node, scope_key=scope_key)
            if symbol is None or symbol.kind is not SymbolKind.VALUE or symbol.node is None:
                self._fail(candidate, f"'{ast.unparse(node)}' is not a module- or class-level int constant", node)
            return self._evaluate(
                symbol.node, symbol.unit, candidate, depth + 1, symbol.line, self._owning_class(symbol.key)
            )

        self._fail(candidate, f"'{ast.unparse(node)}' is not a constant expression", node)

    def _owning_class(self, key: str) -> tuple[ast.ClassDef, str] | None:
        """The class body a constant is bound in, as an evaluation scope; ``None`` for module scope."""
        owner = self._resolver.lookup(key.rpartition(".")[0])
        if owner is None or owner.kind is not SymbolKind.CLASS or not isinstance(owner.node, ast.ClassDef):
            return None
        return owner.node, owner.key

    @staticmethod
    def _fail(candidate: ResolvedCandidate, reason: str, node: ast.AST) -> NoReturn:
        location = f"{candidate.candidate.unit.path}:{getattr(node, 'lineno', candidate.candidate.node.lineno)}"
        raise MalformedPriorityError(candidate.qualified_name, reason, location)
