"""Tests for compiler configuration and template frontmatter."""

import pytest

from avosetta.config import CONFIG_FILENAME, CompilerConfig, find_config, load_config
from avosetta.errors import ConfigError
from avosetta.frontmatter import TemplateFrontmatter, parse_frontmatter

from .helpers import write


class TestCompilerConfig:

    def test_defaults(self):
        config = CompilerConfig()
        assert config.function_name == "render"
        assert config.sink_name == "__out"
        assert config.indent == 4
        assert config.optimize is True
        assert config.params == ()

    def test_from_dict(self):
        config = CompilerConfig.from_dict({"function_name": "page", "indent": 2, "params": ["a", "b"]})
        assert config == CompilerConfig(function_name="page", indent=2, params=("a", "b"))

    def test_params_as_comma_string(self):
        assert CompilerConfig.from_dict({"params": "a, b"}).params == ("a", "b")

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown configuration keys: colour"):
            CompilerConfig.from_dict({"colour": "red"})

    @pytest.mark.parametrize("data", [
        {"indent": "4"},
        {"indent": True},
        {"optimize": "yes"},
        {"function_name": 1},
        {"params": [1, 2]},
    ])
    def test_wrong_types(self, data):
        with pytest.raises(ConfigError):
            CompilerConfig.from_dict(data)

    @pytest.mark.parametrize("kwargs", [
        {"function_name": "class"},
        {"sink_name": "1x"},
        {"indent": 0},
        {"params": ("ok", "not ok")},
        {"params": ("__out",)},
    ])
    def test_validation(self, kwargs):
        with pytest.raises(ConfigError):
            CompilerConfig(**kwargs)

    def test_merged_ignores_none(self):
        config = CompilerConfig(function_name="a")
        assert config.merged(function_name=None, params=None) is config
        assert config.merged(params=["x"]).params == ("x",)


class TestConfigFiles:

    def test_load(self, tmp_path):
        path = write(tmp_path / CONFIG_FILENAME, "function_name: page\noptimize: false\n")
        config = load_config(path)
        assert config.function_name == "page"
        assert config.optimize is False

    def test_empty_file(self, tmp_path):
        path = write(tmp_path / CONFIG_FILENAME, "")
        assert load_config(path) == CompilerConfig()

    def test_invalid_yaml(self, tmp_path):
        path = write(tmp_path / CONFIG_FILENAME, "indent: [1\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = write(tmp_path / CONFIG_FILENAME, "- a\n- b\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read config"):
            load_config(tmp_path / "nope.yaml")

    def test_find_config_in_parents(self, tmp_path):
        path = write(tmp_path / CONFIG_FILENAME, "indent: 2\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config(nested) == path.resolve()

    def test_find_config_absent(self, tmp_path):
        assert find_config(tmp_path / "a") is None or find_config(tmp_path / "a").parent != tmp_path


class TestFrontmatter:

    def test_absent(self):
        assert parse_frontmatter("p;") == (None, "p;", 1)

    def test_parse(self):
        fm, text, first_line = parse_frontmatter("---\nname: page\nparams: [a, b]\n---\np;\n")

        assert fm == TemplateFrontmatter(params=("a", "b"), name="page")
        assert text == "p;\n"
        assert first_line == 5

    def test_empty_block(self):
        fm, text, first_line = parse_frontmatter("---\n\n---\np;")
        assert fm == TemplateFrontmatter()
        assert text == "p;"
        assert first_line == 4

    def test_unclosed_block_is_markup(self):
        assert parse_frontmatter("---\nparams: [a]\n") == (None, "---\nparams: [a]\n", 1)

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown frontmatter keys: title"):
            parse_frontmatter("---\ntitle: x\n---\n")

    def test_invalid_parameter(self):
        with pytest.raises(ConfigError, match="not a valid Python identifier"):
            parse_frontmatter("---\nparams: [a-b]\n---\n")

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError, match="Invalid YAML in template frontmatter"):
            parse_frontmatter("---\nparams: [a\n---\n")
