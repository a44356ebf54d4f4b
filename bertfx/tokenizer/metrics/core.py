# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tokenizer coverage metrics.

Before trusting a BERT vocabulary with a new corpus, you want to know how
much of that corpus it actually covers. A high unknown-token rate means
features are being computed from [UNK] embeddings, and heavy fragmentation
(many pieces per word) means the model sees text it was never trained on.
"""

from typing import NamedTuple

from bertfx.logging.logger import get_logger
from bertfx.tokenizer.basic.core import BasicTokenizer
from bertfx.tokenizer.wordpiece.core import Matched, WordpieceTokenizer


class TokenizerMetrics(NamedTuple):
    """Coverage numbers over a sample of texts."""

    vocab_size: int
    total_lines: int
    total_words: int
    total_tokens: int
    unk_rate: float
    avg_tokens_per_word: float
    avg_tokens_per_line: float


def compute_metrics(
    tokenizer: WordpieceTokenizer,
    sample_texts: list[str],
) -> TokenizerMetrics:
    """
    Compute coverage metrics over a set of sample texts.

      - unk_rate: fraction of emitted tokens that are the unknown token
      - avg_tokens_per_word: pieces per basic token, 1.0 means no fragmentation
      - avg_tokens_per_line: how quickly inputs approach max_length
    """
    logger = get_logger("bertfx.tokenizer.metrics")
    config = tokenizer.config
    vocab_size = len(config.vocabulary)

    if not sample_texts:
        logger.warning("No sample texts provided for metrics computation")
        return TokenizerMetrics(
            vocab_size=vocab_size,
            total_lines=0,
            total_words=0,
            total_tokens=0,
            unk_rate=0.0,
            avg_tokens_per_word=0.0,
            avg_tokens_per_line=0.0,
        )

    basic = BasicTokenizer(lowercase=config.lowercase, strip_accents=config.strip_accents)

    total_words = 0
    total_tokens = 0
    total_unk = 0
    for text in sample_texts:
        for word in basic.split(text):
            total_words += 1
            match = tokenizer.split_word(word)
            if isinstance(match, Matched):
                total_tokens += len(match.pieces)
                total_unk += match.pieces.count(config.unknown_token)
            else:
                total_tokens += 1
                total_unk += 1

    total_lines = len(sample_texts)
    metrics = TokenizerMetrics(
        vocab_size=vocab_size,
        total_lines=total_lines,
        total_words=total_words,
        total_tokens=total_tokens,
        unk_rate=round(total_unk / total_tokens, 6) if total_tokens > 0 else 0.0,
        avg_tokens_per_word=round(total_tokens / total_words, 4) if total_words > 0 else 0.0,
        avg_tokens_per_line=round(total_tokens / total_lines, 4),
    )

    logger.info(
        "Tokenizer metrics computed",
        extra={
            "vocab_size": metrics.vocab_size,
            "unk_rate": metrics.unk_rate,
            "avg_tokens_per_word": metrics.avg_tokens_per_word,
            "avg_tokens_per_line": metrics.avg_tokens_per_line,
        },
    )

    return metrics
