# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Abstract encoder session.

The feature extractor never knows which runtime executes the transformer.
It only holds an EncoderSession and calls invoke(). Concrete sessions live
in bertfx.encoder.onnx and bertfx.encoder.torchscript.

Contract every implementation must honour:

  - The input/output contract is validated in the constructor. A session
    that exists is a session whose embedding dimension is known.
  - invoke(input_ids, attention_mask, token_type_ids), each int64 [1, L],
    returns an EncoderOutput with a [L, D] token matrix and a [D] pooled
    vector. Failures raise EncoderInvocationError.
  - close() releases the native resource. Calling it twice is a no-op, and
    invoke() after close raises EncoderClosedError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import TracebackType
from typing import Optional, Union

import numpy as np

# Declared tensor dimensions can be symbolic ("batch", "sequence") or unknown.
Dimension = Union[int, str, None]


@dataclass(frozen=True)
class TensorSpec:
    """Name and declared shape of one encoder input or output."""

    name: str
    shape: tuple[Dimension, ...]

    @property
    def rank(self) -> int:
        return len(self.shape)


@dataclass(frozen=True)
class EncoderOutput:
    """
    The two results of one encoder call, with the batch axis removed.

    token_embeddings has one row per input position, [CLS] and [SEP]
    included. pooled is a separate model output, not row 0 of the matrix.
    """

    token_embeddings: np.ndarray
    pooled: np.ndarray

    @property
    def sequence_length(self) -> int:
        return int(self.token_embeddings.shape[0])

    @property
    def dim(self) -> int:
        return int(self.pooled.shape[0])


class EncoderSession(ABC):
    """Injected capability: run the transformer on one assembled input."""

    @property
    @abstractmethod
    def dim(self) -> int:
        """Embedding dimensionality D, fixed for the session's lifetime."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    @abstractmethod
    def invoke(
        self,
        input_ids: np.ndarray,
        attention_mask: np.ndarray,
        token_type_ids: np.ndarray,
    ) -> EncoderOutput:
        """
        Run the encoder once.

        Args:
            input_ids: int64 array of shape [1, L].
            attention_mask: int64 array of shape [1, L].
            token_type_ids: int64 array of shape [1, L].

        Returns:
            EncoderOutput with a [L, D] matrix and a [D] pooled vector.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> "EncoderSession":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
