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
"""Order planner — the definitive invocation sequence."""

from __future__ import annotations

from collections.abc import Iterable

from modinit.generator.types import OrderedEntry, ResolvedCandidate


def plan_order(prioritized: Iterable[tuple[int, ResolvedCandidate]]) -> tuple[OrderedEntry, ...]:
    """Sort by priority ascending; equal priorities keep their discovery order.

    ``sorted`` is stable, and the discovery sequence is part of the key as
    well, so the result does not depend on the order *prioritized* arrives in.
    """
    entries = [
        OrderedEntry(
            priority=priority,
            qualified_name=candidate.qualified_name,
            sequence=candidate.sequence,
            module=candidate.module,
        )
        for priority, candidate in prioritized
    ]
    return tuple(sorted(entries, key=lambda entry: (entry.priority, entry.sequence)))
