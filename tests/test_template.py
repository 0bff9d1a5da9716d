"""
End-to-end tests: markup is compiled, executed and rendered into HTML.
"""

import pytest

from avosetta import Html, HtmlBuffer, Template, raw
from avosetta.errors import TemplateSyntaxError


def render(source, **values):
    return Template(source, params=list(values)).render(**values)


class TestRendering:

    def test_static_document(self):
        html = render('html { head { meta[charset="UTF-8"]; title { "Hi" } } }')
        assert html == '<html><head><meta charset="UTF-8"><title>Hi</title></head></html>'
        assert isinstance(html, Html)

    def test_interpolation_is_escaped(self):
        assert render("p { @name }", name="<b>&</b>") == "<p>&lt;b&gt;&amp;&lt;/b&gt;</p>"

    def test_raw_interpolation(self):
        assert render("div { @!html }", html="<b>x</b>") == "<div><b>x</b></div>"

    def test_raw_helper(self):
        assert render("div { @raw(html) }", html="<i>y</i>") == "<div><i>y</i></div>"

    def test_static_and_dynamic_strings_render_the_same(self):
        """Compile-time and runtime escaping agree."""
        static = Template('p { "<a & \'b\'>" }').render()
        dynamic = Template('p { @"<a & \'b\'>" }').render()
        assert static == dynamic == "<p>&lt;a &amp; &#39;b&#39;&gt;</p>"

    def test_value_conversion(self):
        assert render("@a @b @c @d", a=None, b=True, c=False, d=3) == "truefalse3"

    @pytest.mark.parametrize("flag, expected", [
        (True, "<p>true</p><p>true</p>"),
        (False, "<p>false</p><p>false</p>"),
        (None, "<p></p><p></p>"),
    ])
    def test_raw_value_conversion_matches_escaped(self, flag, expected):
        """'@!' converts values like '@' does, it only skips escaping."""
        assert render("p { @flag } p { @!flag }", flag=flag) == expected

    def test_operators_need_parentheses(self):
        """An implicit expression stops at the first operator."""
        assert render("p { @(x + 2) }", x=1) == "<p>3</p>"
        with pytest.raises(TemplateSyntaxError, match="Unexpected character '\\+'"):
            Template("p { @x + 2 }", params=["x"])

    def test_block_expression(self):
        assert render("span { @{ a + b } }", a=2, b=3) == "<span>5</span>"

    def test_for_loop(self):
        html = render("ul { @for item in items { li { @item } } }", items=["a", "<b>"])
        assert html == "<ul><li>a</li><li>&lt;b&gt;</li></ul>"

    def test_for_loop_with_tuple_binding(self):
        html = render('@for (i, x) in enumerate(xs) { @i ":" @x " " }', xs=["a", "b"])
        assert html == "0:a 1:b "

    @pytest.mark.parametrize("n, expected", [(5, "many"), (1, "one"), (0, "none")])
    def test_if_chain(self, n, expected):
        source = '@if n > 1 { "many" } else if n == 1 { "one" } else { "none" }'
        assert render(source, n=n) == expected

    @pytest.mark.parametrize("kind, expected", [
        ("a", "Alpha"),
        ("b", "<em>Beta</em>"),
        ("z", "<em>z</em>"),
    ])
    def test_match(self, kind, expected):
        source = '@match kind { "a" => "Alpha", "b" => { em { "Beta" } } other => { em { @other } } }'
        assert render(source, kind=kind) == expected

    def test_comments_are_ignored(self):
        assert render('// greeting\np { "x" } // done') == "<p>x</p>"


class TestAttributes:

    def test_boolean_attribute_equivalence(self):
        bare = render('input[type="checkbox", checked];')
        explicit = render('input[type="checkbox", checked=true];')
        assert bare == explicit == '<input type="checkbox" checked>'

    def test_false_attribute_is_omitted(self):
        assert render('input[type="checkbox", checked=false];') == '<input type="checkbox">'

    @pytest.mark.parametrize("value, expected", [
        (True, "<input checked>"),
        (False, "<input>"),
        (None, "<input>"),
        ("yes", '<input checked="yes">'),
    ])
    def test_dynamic_attribute(self, value, expected):
        assert render("input[checked={value}];", value=value) == expected

    def test_dynamic_attribute_is_escaped(self):
        assert render("a[title={t}] { }", t='say "hi"') == '<a title="say &quot;hi&quot;"></a>'

    def test_static_attribute_is_escaped(self):
        assert render('a[title="a<b"] { }') == '<a title="a&lt;b"></a>'


class TestComposition:

    def test_fragment_is_embedded(self):
        item = Template("li { @name }", params=["name"])
        page = Template("ul { @content }", params=["content"])

        html = page.render(item.bind("<x>"))

        assert html == "<ul><li>&lt;x&gt;</li></ul>"

    def test_fragment_as_html(self):
        item = Template("b { @x }", params=["x"])
        fragment = item.bind(x="1")
        assert fragment.__html__() == "<b>1</b>"
        assert str(fragment) == "<b>1</b>"

    def test_render_into_custom_sink(self):
        buffer = HtmlBuffer()
        buffer.write_literal("<!DOCTYPE html>")
        Template("p { @x }", params=["x"]).render_into(buffer, "y")
        assert buffer.getvalue() == "<!DOCTYPE html><p>y</p>"

    def test_globals(self):
        template = Template("p { @shout(x) }", params=["x"], globals={"shout": str.upper})
        assert template.render("hi") == "<p>HI</p>"

    def test_raw_returns_html(self):
        assert raw("<b>") == Html("<b>")
        assert raw(Html("a")).__html__() == "a"


class TestTemplateFiles:

    def test_from_file_with_frontmatter(self, template_file):
        path = template_file("""
            ---
            name: page
            params: [title]
            ---
            h1 { @title }
        """)

        template = Template.from_file(path)

        assert template.params == ("title",)
        assert template.code.startswith("def page(__out, title):")
        assert template.render(title="T") == "<h1>T</h1>"

    def test_errors_point_into_the_file(self, template_file):
        path = template_file("""
            ---
            params: [x]
            ---
            div {
              p { @x }
        """)

        with pytest.raises(TemplateSyntaxError) as exc:
            Template.from_file(path)
        assert (exc.value.line, exc.value.column) == (4, 5)
