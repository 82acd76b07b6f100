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
"""ModuleInitGenerator — scan, resolve, extract, plan and emit in one pass."""

from __future__ import annotations

import sys

import structlog

from modinit.config.properties.generator import GeneratorProperties
from modinit.core.config import Config
from modinit.generator.emitter import emit
from modinit.generator.planner import plan_order
from modinit.generator.priority import PriorityExtractor
from modinit.generator.resolver import SymbolResolver
from modinit.generator.scanner import CandidateScanner, MarkerNameMatcher
from modinit.generator.source import Compilation
from modinit.generator.types import GeneratedUnit, OrderedEntry, ResolvedCandidate

logger = structlog.get_logger(__name__)


def is_build_time() -> bool:
    """``False`` inside interactive hosts (REPL, ``python -i``, IPython), ``True`` otherwise."""
    if hasattr(sys, "ps1") or sys.flags.interactive:
        return False
    ipython = sys.modules.get("IPython")
    get_ipython = getattr(ipython, "get_ipython", None)
    return not (callable(get_ipython) and get_ipython() is not None)


class ModuleInitGenerator:
    """Generates the module initializer for one compilation.

    Each call to :meth:`plan` or :meth:`execute` is an independent run with
    its own resolver, so nothing resolved for one compilation leaks into the
    next.
    """

    def __init__(self, properties: GeneratorProperties | None = None) -> None:
        self._properties = properties or GeneratorProperties()
        self._matcher = MarkerNameMatcher(self._properties.marker_short_name, self._properties.marker_suffix)

    @classmethod
    def from_config(cls, config: Config) -> ModuleInitGenerator:
        return cls(config.bind(GeneratorProperties))

    @property
    def properties(self) -> GeneratorProperties:
        return self._properties

    def plan(self, compilation: Compilation) -> tuple[OrderedEntry, ...]:
        """Discover, validate and order the marked functions of *compilation*.

        Returns an empty plan when no function is marked or when the marker
        itself is not part of the compilation.

        Raises:
            DuplicateMarkerError: a function carries the marker twice.
            MarkerDefinitionError: the marker cannot be read.
            MalformedPriorityError: a priority is not an int constant.
        """
        units = [
            unit
            for unit in compilation.units
            if unit.module.rpartition(".")[2] != self._properties.output_module
        ]
        candidates = CandidateScanner(self._matcher).scan(units)
        if not candidates:
            logger.debug("no_candidates", units=len(units))
            return ()

        resolver = SymbolResolver(compilation)
        marker = resolver.locate_marker(self._properties.marker)
        if marker is None:
            logger.info("marker_not_found", marker=self._properties.marker, candidates=len(candidates))
            return ()

        extractor = PriorityExtractor(resolver, marker)
        prioritized: list[tuple[int, ResolvedCandidate]] = []
        for candidate in candidates:
            resolved = resolver.resolve(candidate, marker)
            if resolved is not None:
                prioritized.append((extractor.extract(resolved), resolved))

        plan = plan_order(prioritized)
        logger.info("plan_computed", candidates=len(candidates), selected=len(plan))
        return plan

    def execute(self, compilation: Compilation, package: str) -> GeneratedUnit | None:
        """Run the pass and render the initializer to be placed in *package*.

        Returns ``None`` when the generator is disabled, when not running as
        part of a build, or when there is nothing to initialize.
        """
        if not self._properties.enabled:
            logger.info("generator_disabled")
            return None
        if not is_build_time():
            logger.debug("generator_inert", reason="interactive host")
            return None

        unit = emit(self.plan(compilation), package, self._properties.output_module)
        if unit is not None:
            logger.info("unit_emitted", module=unit.module_name, calls=len(unit.entries))
        return unit
