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
"""Name helpers shared by the scanner and the resolver."""

from __future__ import annotations

import ast


def dotted_name(node: ast.AST) -> str | None:
    """Spell a ``Name`` / ``Attribute`` chain as ``a.b.c``; ``None`` for anything else."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


def decorator_target(decorator: ast.expr) -> ast.expr:
    """The decorator expression without its call, e.g. ``m.x`` for ``@m.x(3)``."""
    return decorator.func if isinstance(decorator, ast.Call) else decorator


def mangle(name: str, class_name: str | None) -> str:
    """Apply Python's private-name mangling for *name* declared in *class_name*."""
    if class_name is None or not name.startswith("__") or name.endswith("__"):
        return name
    stripped = class_name.lstrip("_")
    if not stripped:
        return name
    return f"_{stripped}{name}"


_TYPE_CHECKING_NAMES = frozenset({"TYPE_CHECKING", "typing.TYPE_CHECKING"})


def runs_on_import(test: ast.expr) -> bool:
    """``False`` for ``if`` tests whose body never runs when the module is imported.

    Covers ``if __name__ == "__main__":`` (either operand order) and
    ``if TYPE_CHECKING:``; the ``else`` branch of such a test still runs.
    """
    if dotted_name(test) in _TYPE_CHECKING_NAMES:
        return False
    if isinstance(test, ast.Compare) and len(test.ops) == 1 and isinstance(test.ops[0], ast.Eq):
        operands = {_literal_or_name(test.left), _literal_or_name(test.comparators[0])}
        return operands != {"name:__name__", "str:__main__"}
    return True


def _literal_or_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return f"name:{node.id}"
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return f"str:{node.value}"
    return None
