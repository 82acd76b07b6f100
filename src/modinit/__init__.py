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
"""modinit — ordered, build-time generated module initializers for Python packages."""

from modinit.marker import (
    HIGHEST_PRECEDENCE,
    LOWEST_PRECEDENCE,
    get_priority,
    initialize_at_startup,
    initialize_at_startup_marker,
)
from modinit.runtime import run_module_initializer

__version__ = "0.1.0"

__all__ = [
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "__version__",
    "get_priority",
    "initialize_at_startup",
    "initialize_at_startup_marker",
    "run_module_initializer",
]
