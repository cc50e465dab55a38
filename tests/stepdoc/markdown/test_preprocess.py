"""Tests for import directive preprocessing."""

from stepdoc.markdown.parser import render_html
from stepdoc.markdown.preprocess import convert_imports, import_placeholder, import_target


class TestConvertImports:
    def test_directive_becomes_placeholder(self):
        assert convert_imports("<<other.md>>") == "<!--__stepdoc_import=other.md-->"

    def test_trailing_whitespace_allowed(self):
        assert convert_imports("<<shared/setup.md>>   ") == import_placeholder("shared/setup.md")

    def test_only_whole_lines_are_directives(self):
        text = "See <<other.md>> for details."
        assert convert_imports(text) == text

    def test_non_markdown_target_untouched(self):
        assert convert_imports("<<other.txt>>") == "<<other.txt>>"

    def test_other_lines_preserved(self):
        text = "# Title\n\n<<a.md>>\n\nBody"
        assert convert_imports(text) == f"# Title\n\n{import_placeholder('a.md')}\n\nBody"

    def test_fenced_code_untouched(self):
        """Directives quoted inside a fenced code block stay literal."""
        text = "```\n<<a.md>>\n```\n<<b.md>>"
        result = convert_imports(text).split("\n")
        assert result[1] == "<<a.md>>"
        assert result[3] == import_placeholder("b.md")

    def test_fence_closed_only_by_matching_marker(self):
        text = "~~~\n```\n<<a.md>>\n~~~\n<<b.md>>"
        result = convert_imports(text).split("\n")
        assert result[2] == "<<a.md>>"
        assert result[4] == import_placeholder("b.md")


class TestImportTarget:
    def test_placeholder_roundtrip(self):
        comment = import_placeholder("a&b.md").removeprefix("<!--").removesuffix("-->")
        assert import_target(comment) == "a&b.md"

    def test_regular_comment(self):
        assert import_target(" just a comment ") is None

    def test_empty_target(self):
        assert import_target("__stepdoc_import=") is None

    def test_placeholder_survives_rendering(self):
        """The renderer passes the placeholder through as an HTML comment."""
        html = render_html("Intro\n\n<<other.md>>\n")
        assert "<!--__stepdoc_import=other.md-->" in html
