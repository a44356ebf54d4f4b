# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for encoder contract validation and output unpacking."""

import numpy as np
import pytest

from bertfx.config.exceptions import EncoderContractError
from bertfx.encoder.contract import unpack_outputs, validate_contract
from bertfx.encoder.exceptions import EncoderInvocationError
from bertfx.encoder.interfaces import TensorSpec

VALID_INPUTS = [
    TensorSpec("input_ids", ("batch", "sequence")),
    TensorSpec("attention_mask", ("batch", "sequence")),
    TensorSpec("token_type_ids", ("batch", "sequence")),
]

VALID_OUTPUTS = [
    TensorSpec("output_0", ("batch", "sequence", 8)),
    TensorSpec("output_1", ("batch", 8)),
]


class TestValidateContract:
    def test_valid_contract_returns_dim(self) -> None:
        assert validate_contract(VALID_INPUTS, VALID_OUTPUTS) == 8

    def test_input_order_does_not_matter(self) -> None:
        assert validate_contract(list(reversed(VALID_INPUTS)), VALID_OUTPUTS) == 8

    def test_custom_output_names(self) -> None:
        outputs = [
            TensorSpec("last_hidden_state", (1, 5, 8)),
            TensorSpec("pooler_output", (1, 8)),
        ]
        dim = validate_contract(
            VALID_INPUTS,
            outputs,
            token_output="last_hidden_state",
            pooled_output="pooler_output",
        )
        assert dim == 8

    def test_wrong_output_count(self) -> None:
        with pytest.raises(EncoderContractError, match="expected 2 outputs, found 1"):
            validate_contract(VALID_INPUTS, VALID_OUTPUTS[:1])

    def test_missing_token_output(self) -> None:
        outputs = [TensorSpec("hidden", (1, 5, 8)), VALID_OUTPUTS[1]]
        with pytest.raises(EncoderContractError, match="'output_0'"):
            validate_contract(VALID_INPUTS, outputs)

    def test_token_output_rank(self) -> None:
        outputs = [TensorSpec("output_0", ("batch", 8)), VALID_OUTPUTS[1]]
        with pytest.raises(EncoderContractError, match="3 dimensions, found \\['batch', 8\\]"):
            validate_contract(VALID_INPUTS, outputs)

    def test_symbolic_dim_rejected(self) -> None:
        outputs = [TensorSpec("output_0", ("batch", "sequence", "hidden")), VALID_OUTPUTS[1]]
        with pytest.raises(EncoderContractError, match="no fixed embedding dimension"):
            validate_contract(VALID_INPUTS, outputs)

    def test_pooled_output_rank(self) -> None:
        outputs = [VALID_OUTPUTS[0], TensorSpec("output_1", ("batch", 1, 8))]
        with pytest.raises(EncoderContractError, match="'output_1' to have 2 dimensions"):
            validate_contract(VALID_INPUTS, outputs)

    def test_dims_must_agree(self) -> None:
        outputs = [VALID_OUTPUTS[0], TensorSpec("output_1", ("batch", 16))]
        with pytest.raises(EncoderContractError, match="found 8 and 16"):
            validate_contract(VALID_INPUTS, outputs)

    def test_wrong_input_count(self) -> None:
        with pytest.raises(EncoderContractError, match="expected 3 inputs, found 2"):
            validate_contract(VALID_INPUTS[:2], VALID_OUTPUTS)

    def test_missing_input_name(self) -> None:
        inputs = [TensorSpec("ids", ("batch", "sequence")), *VALID_INPUTS[1:]]
        with pytest.raises(EncoderContractError, match="'input_ids'"):
            validate_contract(inputs, VALID_OUTPUTS)

    def test_input_rank(self) -> None:
        inputs = [*VALID_INPUTS[:2], TensorSpec("token_type_ids", ("sequence",))]
        with pytest.raises(EncoderContractError, match="'token_type_ids' to have 2 dimensions"):
            validate_contract(inputs, VALID_OUTPUTS)


class TestUnpackOutputs:
    def test_drops_batch_axis(self) -> None:
        output = unpack_outputs(
            np.ones((1, 3, 8), dtype=np.float32),
            np.zeros((1, 8), dtype=np.float32),
            sequence_length=3,
            dim=8,
        )
        assert output.token_embeddings.shape == (3, 8)
        assert output.pooled.shape == (8,)
        assert output.sequence_length == 3
        assert output.dim == 8

    def test_wrong_sequence_length(self) -> None:
        with pytest.raises(EncoderInvocationError, match="Token output"):
            unpack_outputs(np.ones((1, 4, 8)), np.zeros((1, 8)), sequence_length=3, dim=8)

    def test_wrong_pooled_shape(self) -> None:
        with pytest.raises(EncoderInvocationError, match="Pooled output"):
            unpack_outputs(np.ones((1, 3, 8)), np.zeros((8,)), sequence_length=3, dim=8)

    def test_integer_outputs_rejected(self) -> None:
        with pytest.raises(EncoderInvocationError, match="float"):
            unpack_outputs(
                np.ones((1, 3, 8), dtype=np.int64),
                np.zeros((1, 8), dtype=np.int64),
                sequence_length=3,
                dim=8,
            )
