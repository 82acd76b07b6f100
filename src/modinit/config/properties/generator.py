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
"""Generator configuration properties."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from modinit.core.config import config_properties

_IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"


@config_properties(prefix="modinit.generator")
class GeneratorProperties(BaseModel):
    """Configuration for the module-initializer generator (modinit.generator.*)."""

    enabled: bool = True
    marker: str = "modinit.marker.initialize_at_startup"
    marker_suffix: str = Field(default="_marker", pattern=r"^[A-Za-z0-9_]*$")
    output_module: str = Field(default="_module_init", pattern=_IDENTIFIER_PATTERN)
    exclude: list[str] = Field(default_factory=list)

    @field_validator("marker")
    @classmethod
    def _marker_is_qualified(cls, value: str) -> str:
        parts = value.split(".")
        if len(parts) < 2 or not all(part.isidentifier() for part in parts):
            raise ValueError(f"marker must be a dotted module path to a function, got '{value}'")
        return value

    @property
    def marker_short_name(self) -> str:
        return self.marker.rsplit(".", 1)[1]
