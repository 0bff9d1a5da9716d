"""Tests for Python code generation."""

import pytest

from avosetta.compiler.codegen import CodeBuilder, CodeGenerator
from avosetta.compiler.instructions import Branch, ConstructKind, Enter, WriteDynamic, WriteLiteral
from avosetta.compiler.pipeline import compile_markup
from avosetta.config import CompilerConfig
from avosetta.errors import ConfigError


class TestCodeBuilder:

    def test_indentation(self):
        code = CodeBuilder(2)
        code.add_line("if x:")
        code.indent()
        code.add_line("y()")
        code.dedent()
        code.add_line("z()")

        assert str(code) == "if x:\n  y()\nz()\n"


class TestCodeGenerator:

    def test_empty_template(self):
        code = CodeGenerator().generate_function(())
        assert code == "def render(__out):\n    pass\n"

    def test_writes(self):
        lines = CodeGenerator().generate_body([
            WriteLiteral("<p>"),
            WriteDynamic("user.name"),
            WriteDynamic("html", needs_escaping=False),
            WriteDynamic("url", attribute="href"),
        ])

        assert lines == [
            "__out.write_literal('<p>')",
            "__out.write((user.name))",
            "__out.write_raw((html))",
            "__out.write_attr('href', (url))",
        ]

    def test_if_chain(self):
        construct = Enter(ConstructKind.IF, (
            Branch("a", (WriteLiteral("A"),)),
            Branch("b", ()),
            Branch(None, (WriteLiteral("C"),)),
        ))

        assert CodeGenerator().generate_body([construct]) == [
            "if (a):",
            "    __out.write_literal('A')",
            "elif (b):",
            "    pass",
            "else:",
            "    __out.write_literal('C')",
        ]

    def test_for_loop(self):
        construct = Enter(ConstructKind.FOR, (Branch(None, (WriteDynamic("x"),)),), subject="xs", binding="x")

        assert CodeGenerator().generate_body([construct]) == [
            "for x in (xs):",
            "    __out.write((x))",
        ]

    def test_match(self):
        construct = Enter(
            ConstructKind.MATCH,
            (Branch("1", (WriteLiteral("one"),)), Branch("_", ())),
            subject="n",
        )

        assert CodeGenerator().generate_body([construct]) == [
            "match (n):",
            "    case 1:",
            "        __out.write_literal('one')",
            "    case _:",
            "        pass",
        ]

    def test_signature_from_config(self):
        config = CompilerConfig(function_name="page", sink_name="out", indent=2, params=("title",))
        code = CodeGenerator(config).generate_function([WriteDynamic("title")])

        assert code == "def page(out, title):\n  out.write((title))\n"

    def test_invalid_parameter(self):
        with pytest.raises(ConfigError, match="not a valid Python identifier"):
            CodeGenerator().generate_function((), ["not valid"])

    def test_duplicate_parameter(self):
        with pytest.raises(ConfigError, match="Duplicate parameter 'a'"):
            CodeGenerator().generate_function((), ["a", "a"])

    def test_parameter_clashing_with_sink(self):
        with pytest.raises(ConfigError, match="Duplicate parameter '__out'"):
            CodeGenerator().generate_function((), ["__out"])

    def test_generated_module_compiles(self):
        """Generated source is valid Python for every construct."""
        compiled = compile_markup(
            """
            html {
                body[class={cls}] {
                    @if items {
                        ul { @for item in items { li { @item.title } } }
                    } else {
                        p { "Nothing here" }
                    }
                    @match len(items) { 0 => "none", 1 => { "one" } _ => "many" }
                    @!{ footer }
                }
            }
            """,
            ["cls", "items", "footer"],
        )

        compile(compiled.code, "<test>", "exec")
        assert compiled.code.startswith("def render(__out, cls, items, footer):\n")
