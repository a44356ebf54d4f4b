# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Pooling: collapse one encoder call into a single feature vector.

The modes are a closed set. Each has its own pure function, and `pool`
dispatches through a table rather than an if/elif chain:

  CLS           the encoder's pooled output, as is
  MEAN          average of the token rows, [CLS] and [SEP] rows excluded
  CLS_AND_MEAN  elementwise (CLS + MEAN) / 2

The pooled output is a separate model output and is never replaced by row 0
of the embedding matrix; the two differ numerically.

All arithmetic is done in float64 even though encoders emit float32, which
keeps rounding error bounded when averaging hundreds of rows.

MEAN over an empty input (no tokens between [CLS] and [SEP]) returns the
zero vector and logs a warning. CLS_AND_MEAN is then cls / 2.
"""

import logging
from collections.abc import Callable
from enum import Enum

import numpy as np

from bertfx.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)


class PoolingMode(str, Enum):
    """How a single embedding is produced for a whole input sequence."""

    CLS = "CLS"
    MEAN = "MEAN"
    CLS_AND_MEAN = "CLS_AND_MEAN"


Pooler = Callable[[np.ndarray, np.ndarray, int], np.ndarray]


def _as_matrix(embeddings: np.ndarray, num_tokens: int) -> np.ndarray:
    matrix = np.asarray(embeddings, dtype=np.float64)
    if matrix.ndim != 2:
        raise ValueError(f"Embedding matrix must be 2-dimensional, got shape {list(matrix.shape)}")
    if num_tokens < 0:
        raise ValueError(f"num_tokens must be non-negative, got {num_tokens}")
    if matrix.shape[0] != num_tokens + 2:
        raise ValueError(
            f"Embedding matrix has {matrix.shape[0]} rows, expected {num_tokens + 2} "
            f"({num_tokens} tokens plus [CLS] and [SEP])"
        )
    return matrix


def pool_cls(embeddings: np.ndarray, cls_vector: np.ndarray, num_tokens: int) -> np.ndarray:
    """The pooled [CLS] output, converted to float64."""
    return np.array(cls_vector, dtype=np.float64, copy=True).reshape(-1)


def pool_mean(embeddings: np.ndarray, cls_vector: np.ndarray, num_tokens: int) -> np.ndarray:
    """Mean of rows 1 .. num_tokens, i.e. every row except [CLS] and [SEP]."""
    matrix = _as_matrix(embeddings, num_tokens)
    if num_tokens == 0:
        logger.warning(
            "MEAN pooling over an empty token sequence, returning the zero vector",
            extra={"dim": int(matrix.shape[1])},
        )
        return np.zeros(matrix.shape[1], dtype=np.float64)

    totals = matrix[1 : num_tokens + 1].sum(axis=0, dtype=np.float64)
    return totals / num_tokens


def pool_cls_and_mean(
    embeddings: np.ndarray,
    cls_vector: np.ndarray,
    num_tokens: int,
) -> np.ndarray:
    cls_features = pool_cls(embeddings, cls_vector, num_tokens)
    mean_features = pool_mean(embeddings, cls_vector, num_tokens)
    return (cls_features + mean_features) / 2.0


_POOLERS: dict[PoolingMode, Pooler] = {
    PoolingMode.CLS: pool_cls,
    PoolingMode.MEAN: pool_mean,
    PoolingMode.CLS_AND_MEAN: pool_cls_and_mean,
}


def pool(
    embeddings: np.ndarray,
    cls_vector: np.ndarray,
    num_tokens: int,
    mode: PoolingMode | str,
) -> np.ndarray:
    """
    Produce one float64 feature vector of length D.

    Args:
        embeddings: [num_tokens + 2, D] per-position encoder output.
        cls_vector: [D] pooled encoder output.
        num_tokens: Number of real tokens (excluding [CLS] and [SEP]).
        mode: A PoolingMode or its string value.

    Raises:
        ValueError: On an unknown mode or mismatched shapes.
    """
    pooler = _POOLERS[PoolingMode(mode)]
    features = pooler(embeddings, cls_vector, num_tokens)

    dim = np.asarray(embeddings).shape[-1]
    if features.shape != (dim,):
        raise ValueError(
            f"Pooled vector has shape {list(features.shape)}, expected [{dim}]"
        )
    return features
