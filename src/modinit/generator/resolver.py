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
"""Symbol resolver — semantic identity of candidates and of the marker they carry.

Every unit gets a :class:`BindingContext`, the table of names its module
scope binds and the line each binding happens at. Names are resolved to
canonical keys by following imports, re-exports and module-level aliases
across units until a definition is reached; two spellings denote the same
declaration exactly when their keys are equal.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from enum import Enum, auto

import structlog

from modinit.generator.names import decorator_target, dotted_name, mangle, runs_on_import
from modinit.generator.source import Compilation, SourceUnit
from modinit.generator.types import (
    MarkerSymbol,
    ResolvedCandidate,
    Symbol,
    SymbolKind,
    SyntacticCandidate,
)
from modinit.kernel.exceptions import DuplicateMarkerError, MarkerDefinitionError

logger = structlog.get_logger(__name__)

_MAX_ALIAS_DEPTH = 64
_PRIORITY_PARAMETER = "priority"


class BindingKind(Enum):
    DEFINITION = auto()
    IMPORT = auto()
    ALIAS = auto()
    OPAQUE = auto()


@dataclass(frozen=True)
class Binding:
    """One module-scope binding of a name."""

    name: str
    kind: BindingKind
    line: int
    target: str = ""
    node: ast.AST | None = None


class BindingContext:
    """Module-scope bindings of one source unit, in source order."""

    def __init__(self, unit: SourceUnit) -> None:
        self.unit = unit
        self._bindings: dict[str, list[Binding]] = {}
        self._star_imports: list[tuple[int, str]] = []
        self._collect(unit.tree.body)

    def lookup(self, name: str, before_line: int | None = None) -> Binding | None:
        """The binding of *name* in effect just before *before_line* (or at the end of the module)."""
        for binding in reversed(self._bindings.get(name, ())):
            if before_line is None or binding.line < before_line:
                return binding
        return None

    def star_imports(self, before_line: int | None = None) -> list[str]:
        """Modules star-imported before *before_line*, most recent first."""
        return [
            module
            for line, module in reversed(self._star_imports)
            if before_line is None or line < before_line
        ]

    def _bind(self, name: str, kind: BindingKind, line: int, target: str = "", node: ast.AST | None = None) -> None:
        self._bindings.setdefault(name, []).append(Binding(name, kind, line, target, node))

    def _collect(self, body: list[ast.stmt]) -> None:
        for stmt in body:
            if isinstance(stmt, ast.Import):
                for alias in stmt.names:
                    if alias.asname:
                        self._bind(alias.asname, BindingKind.IMPORT, stmt.lineno, alias.name)
                    else:
                        head = alias.name.split(".", 1)[0]
                        self._bind(head, BindingKind.IMPORT, stmt.lineno, head)
            elif isinstance(stmt, ast.ImportFrom):
                base = self._import_base(stmt)
                if base is None:
                    continue
                for alias in stmt.names:
                    if alias.name == "*":
                        self._star_imports.append((stmt.lineno, base))
                    else:
                        target = f"{base}.{alias.name}" if base else alias.name
                        self._bind(alias.asname or alias.name, BindingKind.IMPORT, stmt.lineno, target)
            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                self._bind(stmt.name, BindingKind.DEFINITION, stmt.lineno, node=stmt)
            elif isinstance(stmt, ast.Assign):
                for target in stmt.targets:
                    if isinstance(target, ast.Name):
                        self._bind(target.id, BindingKind.ALIAS, stmt.lineno, node=stmt.value)
                    else:
                        self._bind_opaque(target, stmt.lineno)
            elif isinstance(stmt, ast.AnnAssign) and stmt.value is not None:
                if isinstance(stmt.target, ast.Name):
                    self._bind(stmt.target.id, BindingKind.ALIAS, stmt.lineno, node=stmt.value)
            elif isinstance(stmt, ast.AugAssign):
                self._bind_opaque(stmt.target, stmt.lineno)
            elif isinstance(stmt, ast.If):
                if runs_on_import(stmt.test):
                    self._collect(stmt.body)
                self._collect(stmt.orelse)
            elif isinstance(stmt, (ast.Try, ast.TryStar)):
                self._collect(stmt.body)
                for handler in stmt.handlers:
                    self._collect(handler.body)
                self._collect(stmt.orelse)
                self._collect(stmt.finalbody)
            elif isinstance(stmt, (ast.With, ast.AsyncWith)):
                for item in stmt.items:
                    if item.optional_vars is not None:
                        self._bind_opaque(item.optional_vars, stmt.lineno)
                self._collect(stmt.body)
            elif isinstance(stmt, (ast.For, ast.AsyncFor)):
                self._bind_opaque(stmt.target, stmt.lineno)
                self._collect(stmt.body)
                self._collect(stmt.orelse)
            elif isinstance(stmt, ast.While):
                self._collect(stmt.body)
                self._collect(stmt.orelse)

    def _bind_opaque(self, target: ast.AST, line: int) -> None:
        for node in ast.walk(target):
            if isinstance(node, ast.Name):
                self._bind(node.id, BindingKind.OPAQUE, line)

    def _import_base(self, stmt: ast.ImportFrom) -> str | None:
        if not stmt.level:
            return stmt.module or ""
        package = self.unit.package.split(".") if self.unit.package else []
        if stmt.level - 1 >= len(package):
            return None
        parts = package[: len(package) - (stmt.level - 1)]
        if stmt.module:
            parts.append(stmt.module)
        return ".".join(parts)


class SymbolResolver:
    """Resolves names to canonical symbols for one generator run.

    Binding contexts and referenced units are cached per instance, keyed by
    module name. Create a new resolver for every run.
    """

    def __init__(self, compilation: Compilation) -> None:
        self._compilation = compilation
        self._contexts: dict[str, BindingContext] = {}
        self._references: dict[str, SourceUnit | None] = {}

    def context_for(self, unit: SourceUnit) -> BindingContext:
        context = self._contexts.get(unit.module)
        if context is None:
            context = BindingContext(unit)
            self._contexts[unit.module] = context
        return context

    def unit_for(self, module: str) -> SourceUnit | None:
        unit = self._compilation.get_unit(module)
        if unit is not None:
            return unit
        if module not in self._references:
            self._references[module] = self._compilation.load_reference(module)
        return self._references[module]

    # ------------------------------------------------------------------
    # Canonical lookup
    # ------------------------------------------------------------------

    def lookup(self, qualified_name: str) -> Symbol | None:
        """Resolve a dotted path (``pkg.mod.Class.attr``) to the symbol it denotes."""
        return self._lookup(qualified_name.split("."), frozenset())

    def _lookup(self, parts: list[str], seen: frozenset[str]) -> Symbol | None:
        key = ".".join(parts)
        if key in seen or len(seen) > _MAX_ALIAS_DEPTH:
            return None
        seen = seen | {key}

        for split in range(len(parts), 0, -1):
            module = ".".join(parts[:split])
            unit = self.unit_for(module)
            if unit is not None:
                break
        else:
            return None

        if split == len(parts):
            return Symbol(module, SymbolKind.MODULE, unit)
        return self._member(unit, parts[split], parts[split + 1 :], seen)

    def _member(self, unit: SourceUnit, name: str, rest: list[str], seen: frozenset[str]) -> Symbol | None:
        context = self.context_for(unit)
        binding = context.lookup(name)
        if binding is None:
            for module in context.star_imports():
                found = self._lookup([*module.split("."), name, *rest], seen)
                if found is not None:
                    return found
            return None

        key = f"{unit.module}.{name}"
        if binding.kind is BindingKind.IMPORT:
            return self._lookup([*binding.target.split("."), *rest], seen)
        if binding.kind is BindingKind.DEFINITION:
            return self._definition(unit, key, binding.node, rest)
        if binding.kind is BindingKind.ALIAS:
            assert binding.node is not None
            target = dotted_name(binding.node)
            if target is not None:
                base = self._resolve_dotted(unit, target, binding.line, seen)
                if base is None or not rest:
                    return base
                return self._lookup([*base.key.split("."), *rest], seen)
            if rest:
                return None
            return Symbol(key, SymbolKind.VALUE, unit, binding.node, binding.line)
        return None if rest else Symbol(key, SymbolKind.VALUE, unit, None, binding.line)

    def _definition(self, unit: SourceUnit, key: str, node: ast.AST | None, rest: list[str]) -> Symbol | None:
        if not rest:
            kind = SymbolKind.CLASS if isinstance(node, ast.ClassDef) else SymbolKind.FUNCTION
            return Symbol(key, kind, unit, node, getattr(node, "lineno", 0))
        if not isinstance(node, ast.ClassDef):
            return None

        member = _class_member(node, rest[0])
        if member is None:
            return None
        member_node, line = member
        member_key = f"{key}.{rest[0]}"
        if isinstance(member_node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            return self._definition(unit, member_key, member_node, rest[1:])
        if len(rest) > 1:
            return None
        return Symbol(member_key, SymbolKind.VALUE, unit, member_node, line)

    def _resolve_dotted(self, unit: SourceUnit, dotted: str, line: int | None, seen: frozenset[str]) -> Symbol | None:
        head, *rest = dotted.split(".")
        context = self.context_for(unit)
        binding = context.lookup(head, before_line=line)
        if binding is None:
            for module in context.star_imports(before_line=line):
                found = self._lookup([*module.split("."), head, *rest], seen)
                if found is not None:
                    return found
            return None
        if binding.kind is BindingKind.IMPORT:
            base = binding.target.split(".")
        else:
            base = [*unit.module.split("."), head]
        return self._lookup([*base, *rest], seen)

    # ------------------------------------------------------------------
    # Expressions in source
    # ------------------------------------------------------------------

    def resolve_expression(
        self,
        node: ast.expr,
        unit: SourceUnit,
        line: int | None = None,
        scope: ast.ClassDef | None = None,
        scope_key: str | None = None,
    ) -> Symbol | None:
        """Resolve a name expression as it is evaluated at *line* of *unit*.

        *scope* is the class whose body the expression is evaluated in; its
        earlier bindings shadow module-scope names.
        """
        dotted = dotted_name(node)
        if dotted is None:
            return None
        head = dotted.split(".", 1)[0]
        if scope is not None and scope_key is not None and _class_binds(scope, head, line):
            return self.lookup(f"{scope_key}.{dotted}")
        return self._resolve_dotted(unit, dotted, line, frozenset())

    # ------------------------------------------------------------------
    # Marker and candidates
    # ------------------------------------------------------------------

    def locate_marker(self, key: str) -> MarkerSymbol | None:
        """Find the registered marker; ``None`` when it is absent from the compilation.

        Raises:
            MarkerDefinitionError: the marker exists but its ``priority``
                parameter cannot be read.
        """
        symbol = self.lookup(key)
        if symbol is None:
            return None
        if symbol.kind is not SymbolKind.FUNCTION or not isinstance(symbol.node, ast.FunctionDef):
            raise MarkerDefinitionError(key, f"expected a function, found a {symbol.kind.name.lower()}")

        args = symbol.node.args
        positional = [*args.posonlyargs, *args.args]
        names = [arg.arg for arg in positional]
        keyword_only = [arg.arg for arg in args.kwonlyargs]

        if _PRIORITY_PARAMETER in names:
            index = names.index(_PRIORITY_PARAMETER)
            default_index = index - (len(positional) - len(args.defaults))
            default = args.defaults[default_index] if default_index >= 0 else None
            accepts_keyword = index >= len(args.posonlyargs)
        elif _PRIORITY_PARAMETER in keyword_only:
            index = None
            default = args.kw_defaults[keyword_only.index(_PRIORITY_PARAMETER)]
            accepts_keyword = True
        else:
            raise MarkerDefinitionError(symbol.key, "it declares no 'priority' parameter")

        if default is None:
            raise MarkerDefinitionError(symbol.key, "'priority' has no default value")
        try:
            value = ast.literal_eval(default)
        except ValueError as exc:
            raise MarkerDefinitionError(symbol.key, "'priority' default is not a literal") from exc
        if isinstance(value, bool) or not isinstance(value, int):
            raise MarkerDefinitionError(symbol.key, f"'priority' default must be an int, got {value!r}")

        return MarkerSymbol(symbol.key, index, value, accepts_keyword)

    def resolve(self, candidate: SyntacticCandidate, marker: MarkerSymbol) -> ResolvedCandidate | None:
        """Confirm *candidate* carries the real marker; ``None`` for lookalikes.

        Raises:
            DuplicateMarkerError: the marker is applied more than once.
        """
        unit = candidate.unit
        qualified_name = f"{unit.module}.{candidate.qualname}"
        scope_key = qualified_name.rpartition(".")[0] if candidate.enclosing is not None else None

        applied = []
        for decorator in candidate.decorators:
            symbol = self.resolve_expression(
                decorator_target(decorator),
                unit,
                line=decorator.lineno,
                scope=candidate.enclosing,
                scope_key=scope_key,
            )
            if symbol is not None and symbol.key == marker.key:
                applied.append(decorator)

        if not applied:
            logger.debug("candidate_not_marker", function=qualified_name, location=candidate.location)
            return None
        if len(applied) > 1:
            raise DuplicateMarkerError(qualified_name, len(applied))

        declared = self.lookup(qualified_name)
        if declared is None or declared.node is not candidate.node:
            logger.warning("candidate_shadowed", function=qualified_name, location=candidate.location)
            return None
        return ResolvedCandidate(candidate=candidate, qualified_name=qualified_name, marker=applied[0])


def _class_member(node: ast.ClassDef, attribute: str) -> tuple[ast.AST, int] | None:
    """The last statement in a class body binding *attribute* (mangled), with its line."""
    found: tuple[ast.AST, int] | None = None
    for stmt in node.body:
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            if mangle(stmt.name, node.name) == attribute:
                found = (stmt, stmt.lineno)
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name) and mangle(target.id, node.name) == attribute:
                    found = (stmt.value, stmt.lineno)
        elif isinstance(stmt, ast.AnnAssign) and stmt.value is not None:
            if isinstance(stmt.target, ast.Name) and mangle(stmt.target.id, node.name) == attribute:
                found = (stmt.value, stmt.lineno)
    return found


def _class_binds(node: ast.ClassDef, name: str, before_line: int | None) -> bool:
    for stmt in node.body:
        if before_line is not None and stmt.lineno >= before_line:
            break
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)) and stmt.name == name:
            return True
        if isinstance(stmt, (ast.Assign, ast.AnnAssign, ast.AugAssign)):
            targets = stmt.targets if isinstance(stmt, ast.Assign) else [stmt.target]
            if any(isinstance(t, ast.Name) and t.id == name for t in targets):
                return True
        if isinstance(stmt, (ast.Import, ast.ImportFrom)):
            bound = [alias.asname or alias.name.split(".", 1)[0] for alias in stmt.names]
            if name in bound:
                return True
    return False
