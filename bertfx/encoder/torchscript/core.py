# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
PyTorch encoder session: an in-process nn.Module or a TorchScript file.

Unlike ONNX, a torch module doesn't declare its output shapes up front. We
find out by running a two-position probe ([CLS] [SEP]-sized, all zeros)
through it once at construction, then validate the observed shapes against
the same contract the ONNX backend uses.

Input names come from the forward() signature (or the TorchScript schema).
Outputs are named by position as output_0, output_1, ... when forward()
returns a tuple, which matches the ONNX export naming. When it returns a
mapping (HuggingFace ModelOutput, a plain dict), the keys are used instead.

forward() must take exactly input_ids, attention_mask and token_type_ids.
A stock HuggingFace BertModel takes more than that, so wrap it in a module
with that three-argument forward() and set `token_output: last_hidden_state`
and `pooled_output: pooler_output` when the wrapper returns its ModelOutput.
"""

import inspect
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import numpy as np
import torch
import torch.nn as nn

from bertfx.config.exceptions import EncoderContractError, EncoderLoadError
from bertfx.encoder.contract import (
    ATTENTION_MASK,
    DEFAULT_POOLED_OUTPUT,
    DEFAULT_TOKEN_OUTPUT,
    INPUT_IDS,
    INPUT_NAMES,
    TOKEN_TYPE_IDS,
    unpack_outputs,
    validate_contract,
)
from bertfx.encoder.exceptions import EncoderClosedError, EncoderInvocationError
from bertfx.encoder.interfaces import EncoderOutput, EncoderSession, TensorSpec
from bertfx.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

_PROBE_LENGTH = 2


def resolve_device(device_str: str) -> torch.device:
    """
    Turn the config's device string into an actual torch device.

    "auto" picks CUDA if available, otherwise CPU.
    """
    if device_str == "auto":
        if torch.cuda.is_available():
            return torch.device("cuda")
        return torch.device("cpu")
    return torch.device(device_str)


def _forward_argument_names(module: nn.Module) -> list[str]:
    forward = module.forward
    schema = getattr(forward, "schema", None)
    if schema is not None:
        return [arg.name for arg in schema.arguments if arg.name != "self"]
    return list(inspect.signature(forward).parameters)


def _name_outputs(raw: Any) -> dict[str, torch.Tensor]:
    if isinstance(raw, torch.Tensor):
        return {"output_0": raw}
    if isinstance(raw, Mapping):
        return {str(key): value for key, value in raw.items() if isinstance(value, torch.Tensor)}
    if isinstance(raw, (tuple, list)):
        return {f"output_{index}": value for index, value in enumerate(raw)}
    raise EncoderInvocationError(f"Unsupported encoder output type {type(raw).__name__}")


class TorchEncoderSession(EncoderSession):
    """An EncoderSession backed by a PyTorch module, run under inference_mode."""

    def __init__(
        self,
        module: nn.Module,
        device: str = "cpu",
        token_output: str = DEFAULT_TOKEN_OUTPUT,
        pooled_output: str = DEFAULT_POOLED_OUTPUT,
    ) -> None:
        self._device = resolve_device(device)
        self._token_output = token_output
        self._pooled_output = pooled_output
        self._lock = threading.Lock()
        self._closed = False

        argument_names = _forward_argument_names(module)
        inputs = [TensorSpec(name=name, shape=(1, "sequence")) for name in argument_names]
        missing = [name for name in INPUT_NAMES if name not in argument_names]
        if missing or len(argument_names) != len(INPUT_NAMES):
            # Let the contract checker produce the standard message.
            validate_contract(
                inputs,
                [
                    TensorSpec(name=token_output, shape=(1, "sequence", 1)),
                    TensorSpec(name=pooled_output, shape=(1, 1)),
                ],
                token_output=token_output,
                pooled_output=pooled_output,
            )

        prepared = module.to(self._device).eval()
        self._dim = self._probe(prepared, inputs)
        self._module: Optional[nn.Module] = prepared

        logger.info(
            "Torch encoder loaded",
            extra={"dim": self._dim, "device": str(self._device)},
        )

    @classmethod
    def from_file(
        cls,
        model_path: Path,
        device: str = "cpu",
        token_output: str = DEFAULT_TOKEN_OUTPUT,
        pooled_output: str = DEFAULT_POOLED_OUTPUT,
    ) -> "TorchEncoderSession":
        """
        Load a TorchScript archive (torch.jit.save output) and wrap it.

        Raises:
            EncoderLoadError: If the file is missing or isn't a TorchScript archive.
        """
        if not model_path.is_file():
            raise EncoderLoadError(f"Encoder model not found: {model_path}")

        try:
            module = torch.jit.load(str(model_path), map_location=resolve_device(device))
        except Exception as err:
            raise EncoderLoadError(
                f"Failed to load TorchScript model {model_path}: {err}"
            ) from err

        logger.info("TorchScript archive loaded", extra={"path": str(model_path)})
        return cls(module, device=device, token_output=token_output, pooled_output=pooled_output)

    def _run(self, module: nn.Module, arrays: dict[str, np.ndarray]) -> dict[str, torch.Tensor]:
        tensors = {
            name: torch.from_numpy(np.ascontiguousarray(array, dtype=np.int64)).to(self._device)
            for name, array in arrays.items()
        }
        with torch.inference_mode():
            raw = module(**tensors)
        return _name_outputs(raw)

    def _probe(self, module: nn.Module, inputs: list[TensorSpec]) -> int:
        probe = {name: np.zeros((1, _PROBE_LENGTH), dtype=np.int64) for name in INPUT_NAMES}
        probe[ATTENTION_MASK] = np.ones((1, _PROBE_LENGTH), dtype=np.int64)
        try:
            outputs = self._run(module, probe)
        except Exception as err:
            raise EncoderContractError(
                f"Invalid model, probe call with inputs {list(INPUT_NAMES)} of shape "
                f"[1, {_PROBE_LENGTH}] failed: {err}"
            ) from err

        specs = [
            TensorSpec(name=name, shape=tuple(int(size) for size in tensor.shape))
            for name, tensor in outputs.items()
        ]
        return validate_contract(
            inputs,
            specs,
            token_output=self._token_output,
            pooled_output=self._pooled_output,
        )

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def device(self) -> torch.device:
        return self._device

    def invoke(
        self,
        input_ids: np.ndarray,
        attention_mask: np.ndarray,
        token_type_ids: np.ndarray,
    ) -> EncoderOutput:
        module = self._module
        if self._closed or module is None:
            raise EncoderClosedError("Torch encoder session is closed")

        arrays = {
            INPUT_IDS: input_ids,
            ATTENTION_MASK: attention_mask,
            TOKEN_TYPE_IDS: token_type_ids,
        }
        try:
            outputs = self._run(module, arrays)
        except EncoderInvocationError:
            raise
        except Exception as err:
            raise EncoderInvocationError(f"Torch encoder failed to execute: {err}") from err

        token_tensor = outputs.get(self._token_output)
        pooled_tensor = outputs.get(self._pooled_output)
        if token_tensor is None or pooled_tensor is None:
            raise EncoderInvocationError(
                f"Encoder returned outputs {sorted(outputs)}, expected "
                f"'{self._token_output}' and '{self._pooled_output}'"
            )

        return unpack_outputs(
            token_tensor.detach().cpu().numpy(),
            pooled_tensor.detach().cpu().numpy(),
            int(np.shape(input_ids)[1]),
            self._dim,
        )

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._module = None
            self._closed = True
        if self._device.type == "cuda":
            torch.cuda.empty_cache()
        logger.info("Torch encoder closed", extra={"device": str(self._device)})
