# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for reading a HuggingFace tokenizer.json into a TokenizerConfig.

Every required field gets a test where it's missing or malformed, and the
error has to name the field.
"""

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from bertfx.config.exceptions import ConfigError, TokenizerConfigError
from bertfx.tokenizer.loader.core import load_tokenizer_config, parse_tokenizer_config


class TestParseTokenizerConfig:
    def test_valid_document(self, tokenizer_document: dict[str, Any]) -> None:
        config = parse_tokenizer_config(tokenizer_document)
        assert config.unknown_token == "[UNK]"
        assert config.classification_token == "[CLS]"
        assert config.separator_token == "[SEP]"
        assert config.lowercase is True
        assert config.max_input_chars_per_word == 100
        assert config.continuing_subword_prefix == "##"
        assert len(config.vocabulary) == 26

    def test_null_strip_accents_follows_lowercase(self, tokenizer_document: dict[str, Any]) -> None:
        assert parse_tokenizer_config(tokenizer_document).strip_accents is True

        document = copy.deepcopy(tokenizer_document)
        document["normalizer"]["lowercase"] = False
        assert parse_tokenizer_config(document).strip_accents is False

    def test_explicit_strip_accents_wins(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        document["normalizer"]["strip_accents"] = False
        config = parse_tokenizer_config(document)
        assert config.lowercase is True
        assert config.strip_accents is False

    def test_special_tokens_come_from_post_processor(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        document["model"]["vocab"]["<s>"] = 100
        document["post_processor"]["special_tokens"]["[CLS]"]["tokens"] = ["<s>"]
        assert parse_tokenizer_config(document).classification_token == "<s>"

    @pytest.mark.parametrize(
        ("section", "key"),
        [
            ("normalizer", "lowercase"),
            ("normalizer", "strip_accents"),
            ("model", "unk_token"),
            ("model", "max_input_chars_per_word"),
            ("model", "vocab"),
        ],
    )
    def test_missing_field_is_named(
        self, tokenizer_document: dict[str, Any], section: str, key: str
    ) -> None:
        document = copy.deepcopy(tokenizer_document)
        del document[section][key]
        with pytest.raises(TokenizerConfigError, match=key):
            parse_tokenizer_config(document)

    @pytest.mark.parametrize("key", ["[SEP]", "[CLS]"])
    def test_missing_special_token_is_named(
        self, tokenizer_document: dict[str, Any], key: str
    ) -> None:
        document = copy.deepcopy(tokenizer_document)
        del document["post_processor"]["special_tokens"][key]
        with pytest.raises(TokenizerConfigError, match=key.replace("[", r"\[").replace("]", r"\]")):
            parse_tokenizer_config(document)

    def test_non_integer_vocab_value_names_key(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        document["model"]["vocab"]["hello"] = "7"
        with pytest.raises(TokenizerConfigError, match="hello"):
            parse_tokenizer_config(document)

    def test_empty_vocab_rejected(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        document["model"]["vocab"] = {}
        with pytest.raises(TokenizerConfigError, match="vocab"):
            parse_tokenizer_config(document)

    def test_zero_max_chars_rejected(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        document["model"]["max_input_chars_per_word"] = 0
        with pytest.raises(TokenizerConfigError, match="max_input_chars_per_word"):
            parse_tokenizer_config(document)

    def test_empty_unk_token_rejected(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        document["model"]["unk_token"] = ""
        with pytest.raises(TokenizerConfigError, match="unk_token"):
            parse_tokenizer_config(document)

    def test_unk_token_missing_from_vocab_rejected(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        document["model"]["unk_token"] = "<unk>"
        with pytest.raises(TokenizerConfigError, match="<unk>"):
            parse_tokenizer_config(document)

    def test_non_object_document_rejected(self) -> None:
        with pytest.raises(TokenizerConfigError, match="JSON object"):
            parse_tokenizer_config(["not", "a", "dict"])

    def test_error_is_a_config_error(self, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        del document["model"]
        with pytest.raises(ConfigError):
            parse_tokenizer_config(document)


class TestLoadTokenizerConfig:
    def test_loads_from_disk(self, tokenizer_file: Path) -> None:
        config = load_tokenizer_config(tokenizer_file)
        assert config.vocabulary["hello"] == 7

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(TokenizerConfigError, match="not found"):
            load_tokenizer_config(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "tokenizer.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TokenizerConfigError, match="Invalid JSON"):
            load_tokenizer_config(path)

    def test_error_mentions_path(self, tmp_path: Path, tokenizer_document: dict[str, Any]) -> None:
        document = copy.deepcopy(tokenizer_document)
        del document["normalizer"]
        path = tmp_path / "broken_tokenizer.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(TokenizerConfigError, match="broken_tokenizer.json"):
            load_tokenizer_config(path)
