"""Tests for build-time evaluation of startup priorities."""

import pytest

from modinit.generator.pipeline import ModuleInitGenerator
from modinit.kernel.exceptions import MalformedPriorityError


def _priorities(compile_sources, body: str) -> dict[str, int]:
    source = "from modinit import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE, initialize_at_startup\n" + body
    plan = ModuleInitGenerator().plan(compile_sources({"app.boot": source}))
    return {entry.qualified_name.removeprefix("app.boot."): entry.priority for entry in plan}


class TestPriorityExtraction:
    def test_default_priority(self, compile_sources):
        priorities = _priorities(
            compile_sources,
            "@initialize_at_startup\ndef bare(): pass\n@initialize_at_startup()\ndef empty(): pass\n",
        )
        assert priorities == {"bare": 0, "empty": 0}

    def test_positional_and_keyword(self, compile_sources):
        priorities = _priorities(
            compile_sources,
            "@initialize_at_startup(-5)\ndef positional(): pass\n"
            "@initialize_at_startup(priority=7)\ndef keyword(): pass\n",
        )
        assert priorities == {"positional": -5, "keyword": 7}

    def test_constant_expressions(self, compile_sources):
        priorities = _priorities(
            compile_sources,
            "BASE = 10\n"
            "@initialize_at_startup(BASE * 2 - 1)\ndef derived(): pass\n"
            "@initialize_at_startup(HIGHEST_PRECEDENCE + 1)\ndef early(): pass\n"
            "@initialize_at_startup(priority=LOWEST_PRECEDENCE)\ndef late(): pass\n",
        )
        assert priorities == {"derived": 19, "early": -(2**31) + 1, "late": 2**31 - 1}

    def test_class_level_constant(self, compile_sources):
        priorities = _priorities(
            compile_sources,
            "ORDER = 1\n"
            "class Boot:\n"
            "    ORDER = 5\n"
            "    @staticmethod\n"
            "    @initialize_at_startup(ORDER)\n"
            "    def setup(): pass\n",
        )
        assert priorities == {"Boot.setup": 5}

    def test_class_constant_derived_from_class_constant(self, compile_sources):
        priorities = _priorities(
            compile_sources,
            "class Boot:\n"
            "    BASE = 5\n"
            "    LATER = BASE + 1\n"
            "    @staticmethod\n"
            "    @initialize_at_startup(LATER)\n"
            "    def setup(): pass\n",
        )
        assert priorities == {"Boot.setup": 6}

    def test_class_constant_derived_from_module_constant(self, compile_sources):
        priorities = _priorities(
            compile_sources,
            "BASE = 3\n"
            "class Boot:\n"
            "    LATER = BASE * 2\n"
            "    @staticmethod\n"
            "    @initialize_at_startup(LATER)\n"
            "    def setup(): pass\n",
        )
        assert priorities == {"Boot.setup": 6}

    def test_constant_is_read_at_decorator_line(self, compile_sources):
        priorities = _priorities(
            compile_sources,
            "ORDER = 1\n@initialize_at_startup(ORDER)\ndef setup(): pass\nORDER = 2\n",
        )
        assert priorities == {"setup": 1}

    @pytest.mark.parametrize(
        "argument",
        [
            "True",
            "1.5",
            "'3'",
            "len('abc')",
            "UNKNOWN",
            "initialize_at_startup",
            "2 ** 31",
            "-(2 ** 31) - 1",
            "2 ** 100",
            "1, 2",
            "priority=1, order=2",
            "1, priority=1",
            "*[1]",
        ],
    )
    def test_malformed_priorities(self, compile_sources, argument):
        with pytest.raises(MalformedPriorityError) as exc_info:
            _priorities(compile_sources, f"@initialize_at_startup({argument})\ndef setup(): pass\n")
        assert exc_info.value.code == "PRIORITY_MALFORMED"
        assert exc_info.value.declaration == "app.boot.setup"
        assert exc_info.value.location.startswith("app/boot.py:")
