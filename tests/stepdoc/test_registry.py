"""Tests for the parser registry and settings."""

import pytest

from stepdoc import ParserRegistry, Settings, create_registry
from stepdoc.markdown import Document, MarkdownParser


class TestRegistry:
    def test_builtin_markdown_parser(self):
        registry = create_registry()
        assert registry.names == ["md"]
        assert isinstance(registry.get_parser("md"), MarkdownParser)

    def test_unknown_format(self):
        assert create_registry().get_parser("html") is None

    def test_duplicate_registration_rejected(self):
        registry = ParserRegistry()
        registry.register("md", MarkdownParser(Settings()))
        with pytest.raises(ValueError, match="already registered"):
            registry.register("md", MarkdownParser(Settings()))

    def test_parse_through_registry(self):
        parser = create_registry().get_parser("md")
        doc = parser.parse("# T\n\nid: x\n\n## S\n\nhello")
        assert isinstance(doc, Document)
        assert doc.steps[0].content[0].value == "hello"

    def test_settings_reach_parser(self):
        registry = create_registry(Settings(pass_metadata={"source"}))
        doc = registry.get_parser("md").parse("# T\n\nid: x\nsource: a.md\n\n## S\n\nhello")
        assert doc.extra == {"source": "a.md"}


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STEPDOC_PASS_METADATA", raising=False)
        settings = Settings()
        assert settings.pass_metadata == set()
        assert "codepen.io" in settings.iframe_allowlist
        assert settings.log_level == "INFO"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("STEPDOC_PASS_METADATA", '["source", "owner"]')
        monkeypatch.setenv("STEPDOC_LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.pass_metadata == {"source", "owner"}
        assert settings.log_level == "DEBUG"
