"""Tests for configuration objects."""

import json

import pytest

from xml_node_tree.shared.config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    ConfigError,
    ConfigValidationError,
    LoaderConfig,
    ParserConfig,
    SerializerConfig,
)


class TestParserConfig:
    """Test parser configuration defaults, presets and validation."""

    def test_default_values(self):
        """Test default configuration values."""
        config = ParserConfig()
        assert config.html_mode is False
        assert config.chunk_size == DEFAULT_CHUNK_SIZE
        assert config.html_fallback_encoding == "cp1252"
        assert config.correlation_id is None

    def test_presets(self):
        """Test xml and html presets."""
        assert ParserConfig.xml().html_mode is False
        assert ParserConfig.html().html_mode is True

    def test_config_is_frozen(self):
        """Test that configuration cannot be mutated."""
        config = ParserConfig()
        with pytest.raises(AttributeError):
            config.html_mode = True  # type: ignore[misc]

    def test_invalid_chunk_size_raises(self):
        """Test that non-positive chunk size is rejected."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig(chunk_size=0)
        assert exc_info.value.field_name == "chunk_size"

    def test_invalid_html_mode_type_raises(self):
        """Test that html_mode must be a real bool."""
        with pytest.raises(ConfigValidationError):
            ParserConfig(html_mode="yes")  # type: ignore[arg-type]

    def test_unknown_fallback_encoding_raises(self):
        """Test that an unknown fallback codec is rejected with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig(html_fallback_encoding="no-such-codec")
        assert "cp1252" in exc_info.value.suggestions

    def test_validation_error_is_config_error(self):
        """Test the configuration error hierarchy."""
        assert issubclass(ConfigValidationError, ConfigError)

    def test_override_creates_new_instance(self):
        """Test overriding fields returns a new configuration."""
        config = ParserConfig()
        changed = config.override(html_mode=True, chunk_size=16)
        assert changed.html_mode is True
        assert changed.chunk_size == 16
        assert config.html_mode is False

    def test_override_unknown_field_raises(self):
        """Test overriding an unknown field."""
        with pytest.raises(ConfigValidationError, match="Unknown ParserConfig field"):
            ParserConfig().override(strict=True)


class TestConfigSerialization:
    """Test dictionary and JSON conversion."""

    def test_json_round_trip(self):
        """Test to_json and from_json produce an equal configuration."""
        config = ParserConfig(html_mode=True, chunk_size=128, correlation_id="abc")
        assert ParserConfig.from_json(config.to_json()) == config

    def test_to_dict_contains_all_fields(self):
        """Test dictionary export."""
        data = SerializerConfig(indent="\t").to_dict()
        assert data == {"indent": "\t", "sort_attributes": False, "self_close_empty": True}

    def test_from_dict_unknown_field_raises(self):
        """Test that unknown dictionary keys are reported."""
        with pytest.raises(ConfigValidationError) as exc_info:
            LoaderConfig.from_dict({"timeout": 5})
        assert exc_info.value.field_name == "timeout"
        assert "timeout_seconds" in exc_info.value.suggestions

    def test_from_json_invalid_json_raises(self):
        """Test malformed JSON input."""
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            ParserConfig.from_json("{not json")

    def test_from_json_requires_object(self):
        """Test that JSON arrays are rejected."""
        with pytest.raises(ConfigValidationError):
            ParserConfig.from_json(json.dumps([1, 2]))


class TestSerializerConfig:
    """Test serializer configuration."""

    def test_default_values(self):
        """Test default configuration values."""
        config = SerializerConfig()
        assert config.indent == "  "
        assert config.sort_attributes is False
        assert config.self_close_empty is True

    def test_indent_must_be_whitespace(self):
        """Test that indent only accepts spaces and tabs."""
        with pytest.raises(ConfigValidationError):
            SerializerConfig(indent="--")


class TestLoaderConfig:
    """Test loader configuration."""

    def test_default_values(self):
        """Test default configuration values."""
        config = LoaderConfig()
        assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS == 60.0
        assert config.expect_binary_data is False
        assert config.user_agent

    def test_non_positive_timeout_raises(self):
        """Test that the timeout must be positive."""
        with pytest.raises(ConfigValidationError):
            LoaderConfig(timeout_seconds=0)
