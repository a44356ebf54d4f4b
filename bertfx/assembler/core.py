# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Input assembly: token sequence -> the three encoder input rows.

  tokens          a    b    c
  input_ids  [CLS] id_a id_b id_c [SEP]
  mask           1    1    1    1    1
  token types    0    0    0    0    0

Sequences longer than max_length - 2 are cut to their first max_length - 2
tokens so [CLS] and [SEP] always fit. Only single-segment input is
supported, so token types are all zero, and there is no padding, so the
mask is all ones.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from bertfx.encoder.contract import ATTENTION_MASK, INPUT_IDS, TOKEN_TYPE_IDS
from bertfx.tokenizer.vocab.core import TokenizerConfig

MASK_VALUE = 1
TOKEN_TYPE_VALUE = 0

# [CLS] and [SEP].
SPECIAL_TOKEN_COUNT = 2


def truncate(tokens: Sequence[str], max_length: int) -> tuple[list[str], int]:
    """
    Keep the first max_length - 2 tokens.

    Returns:
        (kept tokens, number of dropped tokens)
    """
    if max_length < SPECIAL_TOKEN_COUNT:
        raise ValueError(f"max_length must be at least {SPECIAL_TOKEN_COUNT}, got {max_length}")
    limit = max_length - SPECIAL_TOKEN_COUNT
    kept = list(tokens[:limit])
    return kept, len(tokens) - len(kept)


@dataclass(frozen=True)
class AssembledInput:
    """Encoder-ready rows plus the tokens they were built from."""

    tokens: tuple[str, ...]
    input_ids: tuple[int, ...]
    attention_mask: tuple[int, ...]
    token_type_ids: tuple[int, ...]
    dropped_tokens: int = 0

    @property
    def length(self) -> int:
        return len(self.input_ids)

    @property
    def truncated(self) -> bool:
        return self.dropped_tokens > 0

    def as_arrays(self) -> dict[str, np.ndarray]:
        """The three rows as int64 [1, L] arrays keyed by encoder input name."""
        return {
            INPUT_IDS: np.asarray([self.input_ids], dtype=np.int64),
            ATTENTION_MASK: np.asarray([self.attention_mask], dtype=np.int64),
            TOKEN_TYPE_IDS: np.asarray([self.token_type_ids], dtype=np.int64),
        }


def assemble(
    tokens: Sequence[str],
    config: TokenizerConfig,
    max_length: int,
) -> AssembledInput:
    """
    Build [CLS] tokens [SEP] ids with an all-ones mask and all-zero token types.

    Tokens missing from the vocabulary map to the unknown id.
    """
    kept, dropped = truncate(tokens, max_length)

    input_ids = (
        [config.classification_id]
        + [config.id_for(token) for token in kept]
        + [config.separator_id]
    )
    length = len(input_ids)

    return AssembledInput(
        tokens=tuple(kept),
        input_ids=tuple(input_ids),
        attention_mask=(MASK_VALUE,) * length,
        token_type_ids=(TOKEN_TYPE_VALUE,) * length,
        dropped_tokens=dropped,
    )
