# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
WordPiece tokenization: greedy longest-match-first over a fixed vocabulary.

For every basic token we repeatedly take the longest prefix of what's left
that the vocabulary knows about. Pieces after the first are looked up with
the continuation prefix ("##") in front, since they don't start a word:

  vocab = {"un", "##aff", "##able", ...}
  "unaffable" -> ["un", "##aff", "##able"]

Failure is all-or-nothing per word. If some remainder has no matching prefix
at all, the pieces found so far are thrown away and the whole word becomes a
single unknown token. The same happens, without any matching, to words
longer than max_input_chars_per_word.

The per-word outcome is a plain value (Matched or Unmatched) rather than an
exception, and the tokenizer resolves it on the spot. tokenize() is total:
it never raises for any input string.
"""

from collections.abc import Container
from dataclasses import dataclass
from typing import Union

from bertfx.tokenizer.basic.core import BasicTokenizer
from bertfx.tokenizer.vocab.core import DEFAULT_CONTINUATION_PREFIX, TokenizerConfig


@dataclass(frozen=True)
class Matched:
    """The word decomposed fully into these vocabulary pieces."""

    pieces: tuple[str, ...]


@dataclass(frozen=True)
class Unmatched:
    """No valid decomposition exists (or the word was too long to try)."""

    word: str


WordMatch = Union[Matched, Unmatched]


def split_word(
    word: str,
    vocabulary: Container[str],
    max_input_chars_per_word: int,
    continuing_subword_prefix: str = DEFAULT_CONTINUATION_PREFIX,
) -> WordMatch:
    """
    Greedy longest-match decomposition of a single basic token.

    Args:
        word: One token from the basic tokenizer (no whitespace inside).
        vocabulary: Anything supporting `in` for subword strings.
        max_input_chars_per_word: Longer words are Unmatched without matching.
        continuing_subword_prefix: Marker prepended to non-initial pieces.

    Returns:
        Matched(pieces) or Unmatched(word).
    """
    if len(word) > max_input_chars_per_word:
        return Unmatched(word)

    pieces: list[str] = []
    start = 0
    while start < len(word):
        end = len(word)
        piece = None
        while start < end:
            candidate = word[start:end]
            if start > 0:
                candidate = continuing_subword_prefix + candidate
            if candidate in vocabulary:
                piece = candidate
                break
            end -= 1

        if piece is None:
            return Unmatched(word)

        pieces.append(piece)
        start = end

    return Matched(tuple(pieces))


class WordpieceTokenizer:
    """
    Text in, subword tokens out.

    Holds only immutable state (the TokenizerConfig and a frozen basic
    tokenizer), so one instance can be shared by any number of threads.
    """

    def __init__(self, config: TokenizerConfig) -> None:
        self._config = config
        self._basic = BasicTokenizer(
            lowercase=config.lowercase,
            strip_accents=config.strip_accents,
        )

    @property
    def config(self) -> TokenizerConfig:
        return self._config

    def split_word(self, word: str) -> WordMatch:
        return split_word(
            word,
            self._config.vocabulary,
            self._config.max_input_chars_per_word,
            self._config.continuing_subword_prefix,
        )

    def tokenize(self, text: str) -> list[str]:
        """Split text into WordPiece tokens. Empty or blank text gives []."""
        tokens: list[str] = []
        for word in self._basic.split(text):
            match = self.split_word(word)
            if isinstance(match, Matched):
                tokens.extend(match.pieces)
            else:
                tokens.append(self._config.unknown_token)
        return tokens

    def convert_tokens_to_ids(self, tokens: list[str]) -> list[int]:
        """Vocabulary ids for `tokens`; anything unknown maps to the unknown id."""
        return [self._config.id_for(token) for token in tokens]

    def encode(self, text: str) -> list[int]:
        """Tokenize and map to ids, without the [CLS]/[SEP] markers."""
        return self.convert_tokens_to_ids(self.tokenize(text))
