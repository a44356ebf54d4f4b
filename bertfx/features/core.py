# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Feature examples built from encoder output.

An Example is one labelled feature vector. A SequenceExample is an ordered
run of them, one per token row, for tagging-style tasks where every
position gets its own label.

Feature names are generated once per extractor ("D=000" ... "D=767" for a
768-wide model) and every Example shares that same tuple, so building a few
thousand examples doesn't allocate a few thousand name lists.
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Optional

import numpy as np

UNKNOWN_LABEL = "unknown"
TOKEN_METADATA = "Token"

DEFAULT_CLS_MARKER = "[CLS]"
DEFAULT_SEP_MARKER = "[SEP]"


def generate_feature_names(dim: int) -> tuple[str, ...]:
    """
    Names "D=<i>" for i in [0, dim), zero-padded to the width of dim - 1.

    Raises:
        ValueError: If dim isn't positive.
    """
    if dim <= 0:
        raise ValueError(f"Embedding dimension must be positive, got {dim}")
    width = len(str(dim - 1))
    return tuple(f"D={index:0{width}d}" for index in range(dim))


@dataclass(frozen=True)
class Example:
    """One labelled feature vector."""

    feature_names: tuple[str, ...]
    feature_values: tuple[float, ...]
    label: str = UNKNOWN_LABEL
    metadata: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if len(self.feature_names) != len(self.feature_values):
            raise ValueError(
                f"Example has {len(self.feature_names)} feature names but "
                f"{len(self.feature_values)} values"
            )
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "features": dict(zip(self.feature_names, self.feature_values)),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class SequenceExample:
    """Examples in encoder order, one per retained token row."""

    examples: tuple[Example, ...]

    def __len__(self) -> int:
        return len(self.examples)

    def __iter__(self) -> Iterator[Example]:
        return iter(self.examples)

    def __getitem__(self, index: int) -> Example:
        return self.examples[index]

    def to_dict(self) -> dict[str, Any]:
        return {"examples": [example.to_dict() for example in self.examples]}


def _values(vector: np.ndarray) -> tuple[float, ...]:
    return tuple(float(value) for value in np.asarray(vector, dtype=np.float64).reshape(-1))


def build_example(
    feature_names: tuple[str, ...],
    features: np.ndarray,
    label: Optional[str] = None,
    unknown_label: str = UNKNOWN_LABEL,
) -> Example:
    """Wrap a pooled feature vector as an Example. A None label becomes unknown_label."""
    return Example(
        feature_names=feature_names,
        feature_values=_values(features),
        label=unknown_label if label is None else label,
    )


def build_sequence_example(
    feature_names: tuple[str, ...],
    embeddings: np.ndarray,
    tokens: Sequence[str],
    labels: Optional[Sequence[str]] = None,
    strip_sentence_markers: bool = True,
    unknown_label: str = UNKNOWN_LABEL,
    cls_marker: str = DEFAULT_CLS_MARKER,
    sep_marker: str = DEFAULT_SEP_MARKER,
) -> SequenceExample:
    """
    One Example per row of an [len(tokens) + 2, D] embedding matrix.

    Row 0 is [CLS] and the last row is [SEP]. With strip_sentence_markers
    they're skipped; otherwise they're kept with the unknown label and the
    marker string as their Token metadata.

    Raises:
        ValueError: If labels doesn't have one entry per token, or the
            matrix doesn't have len(tokens) + 2 rows.
    """
    if labels is not None and len(labels) != len(tokens):
        raise ValueError(
            f"Got {len(labels)} labels for {len(tokens)} tokens, expected one label per token"
        )

    matrix = np.asarray(embeddings, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != len(tokens) + 2:
        raise ValueError(
            f"Embedding matrix has shape {list(matrix.shape)}, expected "
            f"[{len(tokens) + 2}, D] for {len(tokens)} tokens"
        )

    examples: list[Example] = []

    def marker_example(row: int, marker: str) -> Example:
        return Example(
            feature_names=feature_names,
            feature_values=_values(matrix[row]),
            label=unknown_label,
            metadata={TOKEN_METADATA: marker},
        )

    if not strip_sentence_markers:
        examples.append(marker_example(0, cls_marker))

    for position, token in enumerate(tokens):
        examples.append(
            Example(
                feature_names=feature_names,
                feature_values=_values(matrix[position + 1]),
                label=unknown_label if labels is None else labels[position],
                metadata={TOKEN_METADATA: token},
            )
        )

    if not strip_sentence_markers:
        examples.append(marker_example(len(tokens) + 1, sep_marker))

    return SequenceExample(tuple(examples))
