# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for config loader, the entry point for all config loading in bertfx.

We test:
  1. Valid YAML loads into a frozen, correct config object
  2. Missing required fields raise ConfigValidationError
  3. Unknown fields raise ConfigValidationError (extra="forbid")
  4. Broken YAML raises ConfigLoadError
  5. Relative artifact paths resolve against the config file's directory
"""

import textwrap
from pathlib import Path

import pytest

from bertfx.config.exceptions import ConfigLoadError, ConfigValidationError
from bertfx.config.loader import load_config, resolve_relative
from bertfx.pooling.core import PoolingMode


class TestLoadValidConfig:
    def test_loads_minimal_valid_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.project_name == "bertfx-test"
        assert config.global_config.config_version == "1.0.0"
        assert config.global_config.log_level == "DEBUG"

    def test_optional_sections(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.tokenizer is None
        assert config.encoder is None
        assert config.extraction.max_length == 512
        assert config.extraction.pooling == PoolingMode.CLS

    def test_loads_full_config(self, extractor_config_file: Path) -> None:
        config = load_config(extractor_config_file)
        assert config.tokenizer is not None
        assert config.tokenizer.path == "tokenizer.json"
        assert config.encoder is not None
        assert config.encoder.backend == "torchscript"
        assert config.encoder.token_output == "output_0"
        assert config.extraction.max_length == 8
        assert config.extraction.pooling == PoolingMode.CLS_AND_MEAN


class TestLoadInvalidConfig:
    def test_unknown_log_level_raises_validation_error(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
              log_level: "verbose"
        """)
        config_file = tmp_path / "bad_level.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_missing_required_field_raises_validation_error(
        self, invalid_config_file: Path
    ) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(invalid_config_file)

    def test_unknown_field_raises_validation_error(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
              some_nonsense_field: true
        """)
        config_file = tmp_path / "unknown_field.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_unknown_pooling_mode_raises_validation_error(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
            extraction:
              pooling: "MAX"
        """)
        config_file = tmp_path / "bad_pooling.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigValidationError, match="pooling"):
            load_config(config_file)

    def test_broken_yaml_raises_load_error(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(broken_yaml_file)

    def test_non_mapping_yaml_raises_load_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(config_file)

    def test_nonexistent_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "does_not_exist.yaml")

    def test_directory_path_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)


class TestConfigImmutability:
    def test_cannot_mutate_frozen_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.global_config.log_level = "ERROR"  # type: ignore[misc]

    def test_cannot_mutate_nested_extraction(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.extraction.max_length = 4  # type: ignore[misc]


class TestResolveRelative:
    def test_relative_path_joins_config_dir(self, tmp_path: Path) -> None:
        resolved = resolve_relative("models/bert.onnx", tmp_path / "bertfx.yaml")
        assert resolved == (tmp_path / "models" / "bert.onnx").resolve()

    def test_absolute_path_untouched(self, tmp_path: Path) -> None:
        absolute = tmp_path / "elsewhere" / "bert.onnx"
        assert resolve_relative(str(absolute), Path("/some/config.yaml")) == absolute
