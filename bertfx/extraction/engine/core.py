# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Feature extractor: the piece that ties everything together.

Text goes in, features come out:

  text -> WordPiece tokens -> [CLS] ids [SEP] -> encoder -> pool -> Example

The extractor doesn't know about files, YAML, or which runtime executes the
model. It takes an already-validated TokenizerConfig and an already-open
EncoderSession, and the loader module handles building those from a config
file.

Thread safety: the tokenizer and config are immutable, the metrics are
locked, and both encoder backends accept concurrent calls, so one extractor
can serve several threads. close() must not race with in-flight calls.
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Optional

import numpy as np

from bertfx.assembler.core import AssembledInput, assemble
from bertfx.config.schema import ExtractionConfig
from bertfx.encoder.exceptions import EncoderClosedError
from bertfx.encoder.interfaces import EncoderOutput, EncoderSession
from bertfx.extraction.metrics.core import ExtractionMetrics, RequestMetrics
from bertfx.features.core import (
    Example,
    SequenceExample,
    build_example,
    build_sequence_example,
    generate_feature_names,
)
from bertfx.logging.logger import get_logger
from bertfx.pooling.core import PoolingMode, pool
from bertfx.tokenizer.vocab.core import TokenizerConfig
from bertfx.tokenizer.wordpiece.core import WordpieceTokenizer

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class ExtractionResult:
    """
    Everything one encoder call produced, before pooling.

    token_embeddings has one row per entry of input_ids, [CLS] and [SEP]
    included. tokens holds only the kept wordpieces.
    """

    tokens: tuple[str, ...]
    input_ids: tuple[int, ...]
    attention_mask: tuple[int, ...]
    token_type_ids: tuple[int, ...]
    pooled: np.ndarray
    token_embeddings: np.ndarray
    dropped_tokens: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokens": list(self.tokens),
            "input_ids": list(self.input_ids),
            "attention_mask": list(self.attention_mask),
            "token_type_ids": list(self.token_type_ids),
            "dropped_tokens": self.dropped_tokens,
            "pooled": np.asarray(self.pooled, dtype=np.float64).tolist(),
            "token_embeddings": np.asarray(self.token_embeddings, dtype=np.float64).tolist(),
        }


class FeatureExtractor:
    """
    High-level extraction API.

    The CLI talks to this, and so does any code using bertfx as a library.
    It owns the encoder session it was given: closing the extractor closes
    the session.
    """

    def __init__(
        self,
        tokenizer_config: TokenizerConfig,
        encoder: EncoderSession,
        extraction: Optional[ExtractionConfig] = None,
    ) -> None:
        self._config = tokenizer_config
        self._encoder = encoder
        self._extraction = extraction if extraction is not None else ExtractionConfig()
        self._tokenizer = WordpieceTokenizer(tokenizer_config)
        self._feature_names = generate_feature_names(encoder.dim)
        self._metrics = ExtractionMetrics()
        self._closed = False

    @property
    def tokenizer(self) -> WordpieceTokenizer:
        return self._tokenizer

    @property
    def encoder(self) -> EncoderSession:
        return self._encoder

    @property
    def dim(self) -> int:
        return self._encoder.dim

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self._feature_names

    @property
    def max_length(self) -> int:
        return self._extraction.max_length

    @property
    def pooling(self) -> PoolingMode:
        return self._extraction.pooling

    @property
    def vocab(self) -> frozenset[str]:
        """Read-only set of every token string the tokenizer knows."""
        return self._config.vocabulary.tokens()

    @property
    def metrics(self) -> ExtractionMetrics:
        return self._metrics

    @property
    def closed(self) -> bool:
        return self._closed

    def tokenize(self, text: str) -> list[str]:
        return self._tokenizer.tokenize(text)

    def _encode(self, tokens: Sequence[str]) -> tuple[AssembledInput, EncoderOutput]:
        if self._closed:
            raise EncoderClosedError("Feature extractor is closed")

        start = time.monotonic()
        assembled = assemble(tokens, self._config, self._extraction.max_length)
        if assembled.truncated:
            logger.info(
                "Truncating input to max_length",
                extra={
                    "original_tokens": len(tokens),
                    "kept_tokens": len(assembled.tokens),
                    "dropped_tokens": assembled.dropped_tokens,
                    "max_length": self._extraction.max_length,
                },
            )

        arrays = assembled.as_arrays()
        output = self._encoder.invoke(**arrays)

        elapsed_ms = (time.monotonic() - start) * 1000.0
        self._metrics.record(
            RequestMetrics(
                input_tokens=len(tokens),
                kept_tokens=len(assembled.tokens),
                dropped_tokens=assembled.dropped_tokens,
                total_time_ms=elapsed_ms,
            )
        )
        return assembled, output

    def extract(self, text: str, label: Optional[str] = None) -> Example:
        """Tokenize text and return its pooled feature vector as one Example."""
        return self.extract_example(self.tokenize(text), label)

    def extract_example(self, tokens: Sequence[str], label: Optional[str] = None) -> Example:
        """
        Pooled features for an already-tokenized input.

        Tokens not in the vocabulary are encoded as the unknown id. A None
        label becomes the configured unknown label.
        """
        assembled, output = self._encode(tokens)
        features = pool(
            output.token_embeddings,
            output.pooled,
            len(assembled.tokens),
            self._extraction.pooling,
        )
        return build_example(
            self._feature_names,
            features,
            label=label,
            unknown_label=self._extraction.unknown_label,
        )

    def extract_sequence(self, text: str) -> SequenceExample:
        """Tokenize text and return one unlabelled Example per token."""
        return self.extract_sequence_example(self.tokenize(text))

    def extract_sequence_example(
        self,
        tokens: Sequence[str],
        labels: Optional[Sequence[str]] = None,
        strip_sentence_markers: Optional[bool] = None,
    ) -> SequenceExample:
        """
        One Example per token row of the encoder output.

        labels, when given, must have exactly one entry per token. That
        check happens before truncation, so a mismatched call fails without
        running the encoder. When the input is truncated the labels are cut
        along with their tokens.

        Raises:
            ValueError: If len(labels) != len(tokens).
        """
        if labels is not None and len(labels) != len(tokens):
            raise ValueError(
                f"Got {len(labels)} labels for {len(tokens)} tokens, expected one label per token"
            )

        strip = (
            self._extraction.strip_sentence_markers
            if strip_sentence_markers is None
            else strip_sentence_markers
        )

        assembled, output = self._encode(tokens)
        kept_labels = None if labels is None else list(labels[: len(assembled.tokens)])

        return build_sequence_example(
            self._feature_names,
            output.token_embeddings,
            assembled.tokens,
            labels=kept_labels,
            strip_sentence_markers=strip,
            unknown_label=self._extraction.unknown_label,
            cls_marker=self._config.classification_token,
            sep_marker=self._config.separator_token,
        )

    def run(self, text: str) -> ExtractionResult:
        """Tokenize, assemble and encode text, returning the raw encoder output."""
        assembled, output = self._encode(self.tokenize(text))
        return ExtractionResult(
            tokens=assembled.tokens,
            input_ids=assembled.input_ids,
            attention_mask=assembled.attention_mask,
            token_type_ids=assembled.token_type_ids,
            pooled=output.pooled,
            token_embeddings=output.token_embeddings,
            dropped_tokens=assembled.dropped_tokens,
        )

    def close(self) -> None:
        """Release the encoder session. Calling this twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._encoder.close()
        logger.info("Feature extractor closed", extra=self._metrics.summary())

    def __enter__(self) -> "FeatureExtractor":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
