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
"""Startup marker — @initialize_at_startup decorator and precedence constants.

Functions carrying the marker are discovered at build time by the generator in
:mod:`modinit.generator` and called, lowest priority first, by the generated
module initializer. The decorator itself only records the priority; it never
calls anything.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from modinit.kernel.exceptions import DuplicateMarkerError, MalformedPriorityError

F = TypeVar("F", bound=Callable[..., Any])

HIGHEST_PRECEDENCE: int = -(2**31)
LOWEST_PRECEDENCE: int = 2**31 - 1

_PRIORITY_ATTR = "__modinit_priority__"


def initialize_at_startup(priority: int = 0) -> Any:
    """Register a function to be called once when the program loads.

    Lower priority = called earlier. Functions sharing a priority are called
    in the order they appear in the source. Can be used with or without
    arguments:

        @initialize_at_startup
        def configure_logging() -> None: ...

        @initialize_at_startup(-5)
        def load_settings() -> None: ...

        class Plugins:
            @staticmethod
            @initialize_at_startup(priority=10)
            def register() -> None: ...

    Only module-level functions and static methods with no required
    parameters are picked up by the generator.
    """
    if callable(priority) or isinstance(priority, (staticmethod, classmethod)):
        return _mark(priority, 0)

    _check_priority(priority, "initialize_at_startup")

    def decorator(func: F) -> F:
        return _mark(func, priority)

    return decorator


initialize_at_startup_marker = initialize_at_startup


def get_priority(func: Any) -> int | None:
    """Get the startup priority of a function, or ``None`` if it is not marked."""
    if isinstance(func, staticmethod):
        func = func.__func__
    return getattr(func, _PRIORITY_ATTR, None)


def _mark(func: Any, priority: int) -> Any:
    target = func.__func__ if isinstance(func, staticmethod) else func
    if isinstance(target, classmethod):
        raise TypeError("initialize_at_startup cannot be applied to a classmethod")
    if hasattr(target, _PRIORITY_ATTR):
        raise DuplicateMarkerError(getattr(target, "__qualname__", repr(target)))
    setattr(target, _PRIORITY_ATTR, priority)
    return func


def _check_priority(priority: Any, declaration: str) -> None:
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise MalformedPriorityError(declaration, f"priority must be an int, got {type(priority).__name__}")
    if not HIGHEST_PRECEDENCE <= priority <= LOWEST_PRECEDENCE:
        raise MalformedPriorityError(declaration, f"priority {priority} is outside the 32-bit range")
