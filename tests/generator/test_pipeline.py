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
"""End-to-end tests for ModuleInitGenerator."""

import sys
from types import SimpleNamespace

import pytest

from modinit.config.properties.generator import GeneratorProperties
from modinit.core.config import Config
from modinit.generator.pipeline import ModuleInitGenerator, is_build_time
from modinit.generator.source import Compilation
from modinit.kernel.exceptions import DuplicateMarkerError, MarkerDefinitionError

SCENARIO = """
    from modinit import initialize_at_startup

    @initialize_at_startup
    def a(): pass

    @initialize_at_startup(-5)
    def b(): pass

    @initialize_at_startup(priority=2)
    def c(): pass

    @initialize_at_startup(10)
    def d(): pass

    @initialize_at_startup(-10)
    def e(): pass
"""


@pytest.fixture(autouse=True)
def _build_host(monkeypatch):
    monkeypatch.delattr(sys, "ps1", raising=False)


def _calls(unit) -> list[str]:
    return [line.strip().removesuffix("()") for line in unit.text.splitlines() if line.startswith("    app.")]


class TestIsBuildTime:
    def test_script_host(self):
        assert is_build_time()

    def test_interactive_prompt(self, monkeypatch):
        monkeypatch.setattr(sys, "ps1", ">>> ", raising=False)
        assert not is_build_time()

    def test_ipython_session(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "IPython", SimpleNamespace(get_ipython=lambda: object()))
        assert not is_build_time()

    def test_ipython_installed_but_idle(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "IPython", SimpleNamespace(get_ipython=lambda: None))
        assert is_build_time()


class TestModuleInitGenerator:
    def test_priority_order(self, compile_sources):
        unit = ModuleInitGenerator().execute(compile_sources({"app.boot": SCENARIO}), "app")
        assert _calls(unit) == ["app.boot.e", "app.boot.b", "app.boot.a", "app.boot.c", "app.boot.d"]
        assert [entry.priority for entry in unit.entries] == [-10, -5, 0, 2, 10]
        assert unit.module_name == "app._module_init"

    def test_equal_priorities_keep_source_order(self, compile_sources):
        source = """
            from modinit import initialize_at_startup

            @initialize_at_startup(1)
            def x(): pass

            @initialize_at_startup(1)
            def y(): pass
        """
        unit = ModuleInitGenerator().execute(compile_sources({"app.boot": source}), "app")
        assert _calls(unit) == ["app.boot.x", "app.boot.y"]

    def test_default_priorities_keep_source_order(self, compile_sources):
        source = """
            from modinit import initialize_at_startup

            @initialize_at_startup
            def x(): pass

            @initialize_at_startup
            def y(): pass
        """
        unit = ModuleInitGenerator().execute(compile_sources({"app.boot": source}), "app")
        assert _calls(unit) == ["app.boot.x", "app.boot.y"]
        assert [entry.priority for entry in unit.entries] == [0, 0]

    def test_script_only_functions_are_not_called(self, compile_sources):
        source = """
            from modinit import initialize_at_startup

            @initialize_at_startup
            def setup(): pass

            if __name__ == "__main__":
                @initialize_at_startup(-1)
                def only_as_script(): pass
        """
        unit = ModuleInitGenerator().execute(compile_sources({"app.boot": source}), "app")
        assert _calls(unit) == ["app.boot.setup"]

    def test_ties_across_modules_follow_module_order(self, compile_sources):
        marked = "from modinit import initialize_at_startup\n@initialize_at_startup\ndef setup(): pass\n"
        compilation = compile_sources({"app.zeta": marked, "app.alpha": marked})
        unit = ModuleInitGenerator().execute(compilation, "app")
        assert _calls(unit) == ["app.alpha.setup", "app.zeta.setup"]

    def test_static_methods(self, compile_sources):
        source = """
            from modinit import initialize_at_startup

            class Plugins:
                @staticmethod
                @initialize_at_startup(-1)
                def register(): pass

                @initialize_at_startup
                def instance(self): pass

            class Generic[T]:
                @staticmethod
                @initialize_at_startup
                def in_generic_class(): pass
        """
        unit = ModuleInitGenerator().execute(compile_sources({"app.boot": source}), "app")
        assert _calls(unit) == ["app.boot.Plugins.register", "app.boot.Generic.in_generic_class"]

    def test_lookalikes_and_invalid_shapes_excluded(self, compile_sources):
        source = """
            from modinit import initialize_at_startup
            from app.fake import initialize_at_startup as other

            @initialize_at_startup
            def real(): pass

            @other.initialize_at_startup
            def lookalike(): pass

            @initialize_at_startup
            def generic[T](): pass

            @initialize_at_startup
            def needs_argument(value): pass
        """
        compilation = compile_sources(
            {"app.boot": source, "app.fake": "class initialize_at_startup:\n    pass\n"}
        )
        unit = ModuleInitGenerator().execute(compilation, "app")
        assert _calls(unit) == ["app.boot.real"]

    def test_nothing_marked(self, compile_sources):
        generator = ModuleInitGenerator()
        compilation = compile_sources({"app.boot": "def setup(): pass\n"})
        assert generator.plan(compilation) == ()
        assert generator.execute(compilation, "app") is None

    def test_deterministic(self, compile_sources):
        first = ModuleInitGenerator().execute(compile_sources({"app.boot": SCENARIO, "app.more": SCENARIO}), "app")
        second = ModuleInitGenerator().execute(compile_sources({"app.more": SCENARIO, "app.boot": SCENARIO}), "app")
        assert first.text == second.text
        assert first.text.encode() == second.text.encode()

    def test_existing_output_module_is_not_scanned(self, compile_sources):
        generated = "from modinit import initialize_at_startup\n@initialize_at_startup\ndef stale(): pass\n"
        compilation = compile_sources({"app.boot": SCENARIO, "app._module_init": generated})
        unit = ModuleInitGenerator().execute(compilation, "app")
        assert "app._module_init.stale" not in _calls(unit)
        assert len(unit.entries) == 5

    def test_missing_marker_generates_nothing(self, compile_sources):
        generator = ModuleInitGenerator(GeneratorProperties(marker="nowhere.marker.initialize_at_startup"))
        compilation = compile_sources({"app.boot": SCENARIO}, search_path=[])
        assert generator.plan(compilation) == ()
        assert generator.execute(compilation, "app") is None

    def test_custom_marker(self, compile_sources):
        compilation = compile_sources(
            {
                "lib.hooks": "def on_start(priority=5):\n    return lambda f: f\n",
                "app.boot": """
                    from lib.hooks import on_start

                    @on_start
                    def defaulted(): pass

                    @on_start(1)
                    def early(): pass
                """,
            }
        )
        generator = ModuleInitGenerator(GeneratorProperties(marker="lib.hooks.on_start", marker_suffix=""))
        unit = generator.execute(compilation, "app")
        assert _calls(unit) == ["app.boot.early", "app.boot.defaulted"]
        assert [entry.priority for entry in unit.entries] == [1, 5]

    def test_corrupt_marker_aborts(self, compile_sources):
        compilation = compile_sources(
            {
                "lib.hooks": "on_start = object()\n",
                "app.boot": "from lib.hooks import on_start\n@on_start\ndef setup(): pass\n",
            }
        )
        generator = ModuleInitGenerator(GeneratorProperties(marker="lib.hooks.on_start"))
        with pytest.raises(MarkerDefinitionError):
            generator.execute(compilation, "app")

    def test_duplicate_marker_aborts(self, compile_sources):
        source = """
            from modinit import initialize_at_startup

            @initialize_at_startup(1)
            @initialize_at_startup(2)
            def setup(): pass
        """
        with pytest.raises(DuplicateMarkerError):
            ModuleInitGenerator().execute(compile_sources({"app.boot": source}), "app")

    def test_inert_in_interactive_host(self, compile_sources, monkeypatch):
        monkeypatch.setattr(sys, "ps1", ">>> ", raising=False)
        assert ModuleInitGenerator().execute(compile_sources({"app.boot": SCENARIO}), "app") is None

    def test_disabled(self, compile_sources):
        generator = ModuleInitGenerator(GeneratorProperties(enabled=False))
        assert generator.execute(compile_sources({"app.boot": SCENARIO}), "app") is None

    def test_custom_output_module(self, compile_sources):
        generator = ModuleInitGenerator(GeneratorProperties(output_module="startup"))
        unit = generator.execute(compile_sources({"app.boot": SCENARIO}), "app")
        assert unit.module_name == "app.startup"

    def test_from_config(self, monkeypatch):
        monkeypatch.setenv("MODINIT_GENERATOR_OUTPUT_MODULE", "_boot")
        generator = ModuleInitGenerator.from_config(Config({"modinit": {"generator": {"enabled": False}}}))
        assert generator.properties.output_module == "_boot"
        assert generator.properties.enabled is False

    def test_from_directory(self, write_tree):
        root = write_tree(
            {
                "app/__init__.py": "",
                "app/boot.py": SCENARIO,
                "app/plugins/__init__.py": """
                    from modinit import initialize_at_startup

                    @initialize_at_startup(-20)
                    def plugins_first(): pass
                """,
            }
        )
        unit = ModuleInitGenerator().execute(Compilation.from_directory(root), "app")
        assert _calls(unit) == [
            "app.plugins.plugins_first",
            "app.boot.e",
            "app.boot.b",
            "app.boot.a",
            "app.boot.c",
            "app.boot.d",
        ]
