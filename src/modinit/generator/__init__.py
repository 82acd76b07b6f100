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
"""Module-initializer generator — discovery, resolution, ordering and emission."""

from modinit.generator.emitter import AUTO_GENERATED_HEADER, emit
from modinit.generator.pipeline import ModuleInitGenerator, is_build_time
from modinit.generator.planner import plan_order
from modinit.generator.source import Compilation, SourceUnit
from modinit.generator.types import GeneratedUnit, OrderedEntry

__all__ = [
    "AUTO_GENERATED_HEADER",
    "Compilation",
    "GeneratedUnit",
    "ModuleInitGenerator",
    "OrderedEntry",
    "SourceUnit",
    "emit",
    "is_build_time",
    "plan_order",
]
