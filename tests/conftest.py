# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for bertfx tests.

Fixtures here are available to every test file automatically. They build a
tiny vocabulary, a tokenizer.json in the HuggingFace layout, a tiny BERT-like
torch module saved as TorchScript, and a YAML config tying them together.
Everything runs on CPU in well under a second.
"""

import json
import textwrap
from pathlib import Path
from typing import Any, Tuple

import pytest
import torch
import torch.nn as nn

from bertfx.tokenizer.vocab.core import TokenizerConfig, Vocabulary

TINY_DIM = 4

TINY_VOCAB: dict[str, int] = {
    "[PAD]": 0,
    "[UNK]": 1,
    "[CLS]": 2,
    "[SEP]": 3,
    "un": 4,
    "##able": 5,
    "unable": 6,
    "hello": 7,
    "world": 8,
    "##s": 9,
    "the": 10,
    "cafe": 11,
    ",": 12,
    "!": 13,
    "want": 14,
    "##ed": 15,
    "run": 16,
    "##ning": 17,
    ".": 18,
    "a": 19,
    "b": 20,
    "c": 21,
    "d": 22,
    "e": 23,
    "##a": 24,
    "##b": 25,
}


class TinyBert(nn.Module):
    """
    Just enough of a BERT to satisfy the encoder contract.

    Returns (per-token embeddings [1, L, D], pooled [1, D]) as a tuple, so
    the outputs are named output_0 and output_1 like an ONNX export.
    """

    def __init__(self, vocab_size: int, dim: int = TINY_DIM) -> None:
        super().__init__()
        self.embed = nn.Embedding(vocab_size, dim)
        self.type_embed = nn.Embedding(2, dim)
        self.pooler = nn.Linear(dim, dim)

    def forward(
        self,
        input_ids: torch.Tensor,
        attention_mask: torch.Tensor,
        token_type_ids: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        hidden = self.embed(input_ids) + self.type_embed(token_type_ids)
        hidden = hidden * attention_mask.unsqueeze(-1).to(hidden.dtype)
        pooled = torch.tanh(self.pooler(hidden[:, 0]))
        return hidden, pooled


def make_tokenizer_document(
    vocab: dict[str, int] | None = None,
    lowercase: bool = True,
    strip_accents: bool | None = None,
    max_input_chars_per_word: int = 100,
) -> dict[str, Any]:
    """A tokenizer.json document in the layout HuggingFace writes for BERT."""
    return {
        "version": "1.0",
        "truncation": None,
        "padding": None,
        "normalizer": {
            "type": "BertNormalizer",
            "clean_text": True,
            "handle_chinese_chars": True,
            "strip_accents": strip_accents,
            "lowercase": lowercase,
        },
        "pre_tokenizer": {"type": "BertPreTokenizer"},
        "post_processor": {
            "type": "TemplateProcessing",
            "special_tokens": {
                "[CLS]": {"id": "[CLS]", "ids": [2], "tokens": ["[CLS]"]},
                "[SEP]": {"id": "[SEP]", "ids": [3], "tokens": ["[SEP]"]},
            },
        },
        "decoder": {"type": "WordPiece", "prefix": "##", "cleanup": True},
        "model": {
            "type": "WordPiece",
            "unk_token": "[UNK]",
            "continuing_subword_prefix": "##",
            "max_input_chars_per_word": max_input_chars_per_word,
            "vocab": dict(TINY_VOCAB if vocab is None else vocab),
        },
    }


@pytest.fixture()
def vocabulary() -> Vocabulary:
    return Vocabulary(TINY_VOCAB)


@pytest.fixture()
def tokenizer_config(vocabulary: Vocabulary) -> TokenizerConfig:
    """Lowercasing, accent-stripping config over the tiny vocabulary."""
    return TokenizerConfig(
        vocabulary=vocabulary,
        unknown_token="[UNK]",
        classification_token="[CLS]",
        separator_token="[SEP]",
        lowercase=True,
        strip_accents=True,
        max_input_chars_per_word=100,
    )


@pytest.fixture()
def tokenizer_document() -> dict[str, Any]:
    return make_tokenizer_document()


@pytest.fixture()
def tokenizer_file(tmp_path: Path, tokenizer_document: dict[str, Any]) -> Path:
    path = tmp_path / "tokenizer.json"
    path.write_text(json.dumps(tokenizer_document), encoding="utf-8")
    return path


@pytest.fixture()
def tiny_bert() -> TinyBert:
    torch.manual_seed(42)
    model = TinyBert(len(TINY_VOCAB))
    model.eval()
    return model


@pytest.fixture()
def torchscript_file(tmp_path: Path, tiny_bert: TinyBert) -> Path:
    """The tiny model compiled with torch.jit.script and saved to disk."""
    path = tmp_path / "encoder.pt"
    torch.jit.save(torch.jit.script(tiny_bert), str(path))
    return path


@pytest.fixture()
def extractor_config_file(tmp_path: Path, tokenizer_file: Path, torchscript_file: Path) -> Path:
    """
    A full config next to its tokenizer and model, using relative paths.

    The TorchScript backend is used so that end-to-end tests don't need an
    ONNX export.
    """
    config_content = textwrap.dedent(f"""\
        global:
          config_version: "1.0.0"
          project_name: "bertfx-test"
          log_level: "DEBUG"
        tokenizer:
          path: "{tokenizer_file.name}"
        encoder:
          backend: "torchscript"
          model_path: "{torchscript_file.name}"
          device: "cpu"
        extraction:
          max_length: 8
          pooling: "CLS_AND_MEAN"
    """)
    config_file = tmp_path / "bertfx.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    Create a minimal valid config YAML file in a temp directory.

    This is the smallest config that passes schema validation.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "bertfx-test"
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (missing required field)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "bertfx-test"
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
