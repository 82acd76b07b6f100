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
"""Runtime bootstrap — loads the generated module initializer of a package."""

from __future__ import annotations

import importlib
import sys

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_OUTPUT_MODULE = "_module_init"


def run_module_initializer(package: str, output_module: str = DEFAULT_OUTPUT_MODULE) -> bool:
    """Import ``<package>.<output_module>``, which runs the startup functions.

    Call this first thing in the program (or from the package's
    ``__init__``). The generated module calls its entry point while it is
    being imported, and Python imports a module once per interpreter, so
    further calls do nothing.

    Returns:
        ``False`` if the package has no generated initializer (nothing was
        marked at build time), ``True`` otherwise.
    """
    name = f"{package}.{output_module}"
    if name in sys.modules:
        return True
    try:
        importlib.import_module(name)
    except ModuleNotFoundError as exc:
        if exc.name != name:
            raise
        logger.debug("initializer_missing", module=name)
        return False
    logger.debug("initializer_loaded", module=name)
    return True
