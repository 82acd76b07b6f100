"""Tests for rendering the generated initializer module."""

import ast
from pathlib import PurePosixPath

from modinit.generator.emitter import AUTO_GENERATED_HEADER, ENTRY_POINT, emit
from modinit.generator.types import OrderedEntry

ENTRIES = (
    OrderedEntry(priority=-10, qualified_name="app.setup.e", sequence=4, module="app.setup"),
    OrderedEntry(priority=0, qualified_name="app.plugins.Registry.register", sequence=0, module="app.plugins"),
    OrderedEntry(priority=0, qualified_name="app.setup.a", sequence=5, module="app.setup"),
)


class TestEmit:
    def test_empty_plan_emits_nothing(self):
        assert emit((), "app", "_module_init") is None

    def test_module_name_and_path(self):
        unit = emit(ENTRIES, "app", "_module_init")
        assert unit.module_name == "app._module_init"
        assert unit.path == PurePosixPath("app/_module_init.py")
        assert unit.entries == ENTRIES

    def test_top_level_output(self):
        unit = emit(ENTRIES, "", "_module_init")
        assert unit.module_name == "_module_init"

    def test_rendered_text(self):
        text = emit(ENTRIES, "app", "_module_init").text
        assert text == (
            "# <auto-generated/>\n"
            "# Generated by modinit. Do not edit.\n"
            "\"\"\"Module initializer for package 'app'.\"\"\"\n"
            "\n"
            "import app.plugins\n"
            "import app.setup\n"
            "\n"
            "\n"
            "def _initialize() -> None:\n"
            "    # Priority: -10\n"
            "    app.setup.e()\n"
            "\n"
            "    # Priority: 0\n"
            "    app.plugins.Registry.register()\n"
            "\n"
            "    # Priority: 0\n"
            "    app.setup.a()\n"
            "\n"
            "\n"
            "_initialize()\n"
        )

    def test_output_is_valid_python(self):
        tree = ast.parse(emit(ENTRIES, "app", "_module_init").text)
        functions = [node for node in tree.body if isinstance(node, ast.FunctionDef)]
        assert [f.name for f in functions] == [ENTRY_POINT]
        calls = [ast.unparse(stmt.value.func) for stmt in functions[0].body]
        assert calls == ["app.setup.e", "app.plugins.Registry.register", "app.setup.a"]

    def test_header_first(self):
        assert emit(ENTRIES, "app", "_module_init").text.splitlines()[0] == AUTO_GENERATED_HEADER

    def test_deterministic(self):
        assert emit(ENTRIES, "app", "_module_init").text == emit(list(ENTRIES), "app", "_module_init").text
