# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The tensor contract between bertfx and an exported BERT encoder.

Inputs (exactly these three, each rank 2, [1, L] integers):
  input_ids, attention_mask, token_type_ids

Outputs (exactly two):
  token output   rank 3, [1, L, D]  per-position embeddings
  pooled output  rank 2, [1, D]     pooled [CLS] representation

validate_contract() runs once at load and returns D. unpack_outputs() runs
on every call and checks the arrays the runtime actually handed back.
"""

from collections.abc import Sequence

import numpy as np

from bertfx.config.exceptions import EncoderContractError
from bertfx.encoder.exceptions import EncoderInvocationError
from bertfx.encoder.interfaces import EncoderOutput, TensorSpec

INPUT_IDS = "input_ids"
ATTENTION_MASK = "attention_mask"
TOKEN_TYPE_IDS = "token_type_ids"

INPUT_NAMES = (INPUT_IDS, ATTENTION_MASK, TOKEN_TYPE_IDS)

DEFAULT_TOKEN_OUTPUT = "output_0"
DEFAULT_POOLED_OUTPUT = "output_1"


def _describe(specs: Sequence[TensorSpec]) -> str:
    return ", ".join(f"{spec.name}{list(spec.shape)}" for spec in specs)


def validate_contract(
    inputs: Sequence[TensorSpec],
    outputs: Sequence[TensorSpec],
    token_output: str = DEFAULT_TOKEN_OUTPUT,
    pooled_output: str = DEFAULT_POOLED_OUTPUT,
) -> int:
    """
    Check an encoder's declared inputs and outputs, returning the embedding dim.

    Raises:
        EncoderContractError: Naming the offending input/output and the
            shape that was observed.
    """
    if len(outputs) != 2:
        raise EncoderContractError(
            f"Invalid model, expected 2 outputs, found {len(outputs)}: {_describe(outputs)}"
        )

    by_name = {spec.name: spec for spec in outputs}

    token_spec = by_name.get(token_output)
    if token_spec is None:
        raise EncoderContractError(
            f"Invalid model, expected an output called '{token_output}', "
            f"found: {_describe(outputs)}"
        )
    if token_spec.rank != 3:
        raise EncoderContractError(
            f"Invalid model, expected output '{token_output}' to have 3 dimensions, "
            f"found {list(token_spec.shape)}"
        )
    dim = token_spec.shape[2]
    if not isinstance(dim, int) or dim <= 0:
        raise EncoderContractError(
            f"Invalid model, output '{token_output}' has no fixed embedding dimension, "
            f"found {list(token_spec.shape)}"
        )

    pooled_spec = by_name.get(pooled_output)
    if pooled_spec is None:
        raise EncoderContractError(
            f"Invalid model, expected an output called '{pooled_output}', "
            f"found: {_describe(outputs)}"
        )
    if pooled_spec.rank != 2:
        raise EncoderContractError(
            f"Invalid model, expected output '{pooled_output}' to have 2 dimensions, "
            f"found {list(pooled_spec.shape)}"
        )
    if pooled_spec.shape[1] != dim:
        raise EncoderContractError(
            f"Invalid model, expected '{token_output}' and '{pooled_output}' to share an "
            f"embedding dimension, found {dim} and {pooled_spec.shape[1]}"
        )

    if len(inputs) != len(INPUT_NAMES):
        raise EncoderContractError(
            f"Invalid model, expected {len(INPUT_NAMES)} inputs, found {len(inputs)}: "
            f"{_describe(inputs)}"
        )
    inputs_by_name = {spec.name: spec for spec in inputs}
    for name in INPUT_NAMES:
        spec = inputs_by_name.get(name)
        if spec is None:
            raise EncoderContractError(
                f"Invalid model, expected an input called '{name}', found: {_describe(inputs)}"
            )
        if spec.rank != 2:
            raise EncoderContractError(
                f"Invalid model, expected input '{name}' to have 2 dimensions, "
                f"found {list(spec.shape)}"
            )

    return dim


def unpack_outputs(
    token_raw: object,
    pooled_raw: object,
    sequence_length: int,
    dim: int,
) -> EncoderOutput:
    """
    Check one call's raw outputs against the contract and drop the batch axis.

    Raises:
        EncoderInvocationError: If either array has the wrong shape.
    """
    token_array = np.asarray(token_raw)
    pooled_array = np.asarray(pooled_raw)

    if token_array.shape != (1, sequence_length, dim):
        raise EncoderInvocationError(
            f"Token output has shape {list(token_array.shape)}, "
            f"expected {[1, sequence_length, dim]}"
        )
    if pooled_array.shape != (1, dim):
        raise EncoderInvocationError(
            f"Pooled output has shape {list(pooled_array.shape)}, expected {[1, dim]}"
        )
    if not np.issubdtype(token_array.dtype, np.floating) or not np.issubdtype(
        pooled_array.dtype, np.floating
    ):
        raise EncoderInvocationError(
            f"Expected float outputs, found {token_array.dtype} and {pooled_array.dtype}"
        )

    return EncoderOutput(token_embeddings=token_array[0], pooled=pooled_array[0])
