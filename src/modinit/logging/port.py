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
"""LoggingPort — what the CLI needs from a logging backend."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from modinit.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    """Logging backend set up once per ``modinit`` command.

    :func:`modinit.cli.generate.load_config` drives it: ``configure`` with the
    loaded :class:`Config`, then ``set_level("modinit", ...)`` for ``-v``/``-vv``.
    Generator modules log through ``structlog.get_logger(__name__)`` and pick up
    whatever the port configured.
    """

    def configure(self, config: Config) -> None:
        """Apply the ``modinit.logging`` section. Raises ``ValueError`` on bad config."""
        ...

    def get_logger(self, name: str) -> Any: ...

    def set_level(self, name: str, level: str) -> None:
        """Override the level of one logger, e.g. ``modinit.generator``."""
        ...
