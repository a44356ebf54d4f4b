# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Reads a HuggingFace tokenizer.json and turns it into a TokenizerConfig.

Only a handful of fields out of that (large) document matter to us:

  normalizer.lowercase / normalizer.strip_accents
  post_processor.special_tokens["[SEP]"].tokens[0]
  post_processor.special_tokens["[CLS]"].tokens[0]
  model.unk_token / model.max_input_chars_per_word / model.vocab
  model.continuing_subword_prefix (optional, defaults to "##")

Everything else in the file is ignored. The fields we do read are validated
through pydantic models, so a missing or mistyped value fails with an error
that names its location in the document (e.g. "model.vocab.hello").

`strip_accents` is nullable in files written by the tokenizers library.
Null means "follow lowercase", which is how the BERT normalizer treats it.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError

from bertfx.config.exceptions import TokenizerConfigError
from bertfx.logging.logger import get_logger
from bertfx.tokenizer.vocab.core import DEFAULT_CONTINUATION_PREFIX, TokenizerConfig, Vocabulary
from bertfx.utils.hashing import compute_sha256

logger: logging.Logger = get_logger(__name__)

SEPARATOR_KEY = "[SEP]"
CLASSIFICATION_KEY = "[CLS]"


class _NormalizerDoc(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    lowercase: StrictBool
    strip_accents: Optional[StrictBool]


class _SpecialTokenDoc(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    tokens: list[StrictStr] = Field(min_length=1)


class _PostProcessorDoc(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    special_tokens: dict[str, _SpecialTokenDoc]


class _ModelDoc(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    unk_token: StrictStr = Field(min_length=1)
    max_input_chars_per_word: StrictInt = Field(gt=0)
    continuing_subword_prefix: Optional[StrictStr] = None
    vocab: dict[str, Annotated[StrictInt, Field(ge=0)]] = Field(min_length=1)


class _TokenizerDoc(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    normalizer: _NormalizerDoc
    post_processor: _PostProcessorDoc
    model: _ModelDoc


def _special_token(doc: _TokenizerDoc, key: str) -> str:
    entry = doc.post_processor.special_tokens.get(key)
    if entry is None:
        found = sorted(doc.post_processor.special_tokens)
        raise TokenizerConfigError(
            f"post_processor.special_tokens is missing '{key}' (found: {found})"
        )
    return entry.tokens[0]


def parse_tokenizer_config(document: Any) -> TokenizerConfig:
    """
    Build a TokenizerConfig from an already-parsed tokenizer.json document.

    Raises:
        TokenizerConfigError: On any missing or invalid field.
    """
    if not isinstance(document, dict):
        raise TokenizerConfigError(
            f"Tokenizer document must be a JSON object, got {type(document).__name__}"
        )

    try:
        doc = _TokenizerDoc.model_validate(document)
    except ValidationError as err:
        raise TokenizerConfigError(f"Invalid tokenizer document:\n{err}") from err

    separator_token = _special_token(doc, SEPARATOR_KEY)
    classification_token = _special_token(doc, CLASSIFICATION_KEY)

    strip_accents = doc.normalizer.strip_accents
    if strip_accents is None:
        strip_accents = doc.normalizer.lowercase

    try:
        vocabulary = Vocabulary(doc.model.vocab)
    except ValueError as err:
        raise TokenizerConfigError(f"Invalid model.vocab: {err}") from err

    return TokenizerConfig(
        vocabulary=vocabulary,
        unknown_token=doc.model.unk_token,
        classification_token=classification_token,
        separator_token=separator_token,
        lowercase=doc.normalizer.lowercase,
        strip_accents=strip_accents,
        max_input_chars_per_word=doc.model.max_input_chars_per_word,
        continuing_subword_prefix=doc.model.continuing_subword_prefix or DEFAULT_CONTINUATION_PREFIX,
    )


def load_tokenizer_config(tokenizer_path: Path) -> TokenizerConfig:
    """
    Load and validate a tokenizer.json file from disk.

    Raises:
        TokenizerConfigError: If the file is missing, isn't JSON, or lacks a
            required field.
    """
    if not tokenizer_path.is_file():
        raise TokenizerConfigError(f"Tokenizer file not found: {tokenizer_path}")

    try:
        document = json.loads(tokenizer_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as err:
        raise TokenizerConfigError(f"Cannot read tokenizer file {tokenizer_path}: {err}") from err
    except json.JSONDecodeError as err:
        raise TokenizerConfigError(f"Invalid JSON in {tokenizer_path}: {err}") from err

    try:
        config = parse_tokenizer_config(document)
    except TokenizerConfigError as err:
        raise TokenizerConfigError(f"{tokenizer_path}: {err}") from err

    logger.info(
        "Tokenizer loaded",
        extra={
            "path": str(tokenizer_path),
            "sha256": compute_sha256(tokenizer_path)[:16],
            "vocab_size": len(config.vocabulary),
            "lowercase": config.lowercase,
            "strip_accents": config.strip_accents,
        },
    )
    return config
