# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
ONNX Runtime encoder session.

This is the backend for BERT models exported with the HuggingFace ONNX
export tool. The session's declared input/output metadata is checked
against the contract before anything else happens, so a wrong export fails
at startup with the offending name and shape instead of on the first
request.

ONNX Runtime's InferenceSession.run is safe to call from several threads at
once, so one OnnxEncoderSession can back concurrent extraction calls.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Optional

import numpy as np
import onnxruntime as ort

from bertfx.config.exceptions import EncoderContractError, EncoderLoadError
from bertfx.encoder.contract import (
    ATTENTION_MASK,
    DEFAULT_POOLED_OUTPUT,
    DEFAULT_TOKEN_OUTPUT,
    INPUT_IDS,
    TOKEN_TYPE_IDS,
    unpack_outputs,
    validate_contract,
)
from bertfx.encoder.exceptions import EncoderClosedError, EncoderInvocationError
from bertfx.encoder.interfaces import EncoderOutput, EncoderSession, TensorSpec
from bertfx.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

CPU_PROVIDER = "CPUExecutionProvider"
CUDA_PROVIDER = "CUDAExecutionProvider"

# ONNX type strings for the integer inputs we know how to feed.
_INTEGER_TYPES: dict[str, Any] = {
    "tensor(int64)": np.int64,
    "tensor(int32)": np.int32,
}


def resolve_providers(device: str) -> list[str]:
    """
    Turn the config's device string into an execution provider list.

    "auto" uses CUDA when this onnxruntime build ships it. CPU is always
    last in the list so unsupported ops can fall back to it.
    """
    if device == "cpu":
        return [CPU_PROVIDER]
    if device == "cuda":
        return [CUDA_PROVIDER, CPU_PROVIDER]
    if device == "auto":
        if CUDA_PROVIDER in ort.get_available_providers():
            return [CUDA_PROVIDER, CPU_PROVIDER]
        return [CPU_PROVIDER]
    raise ValueError(f"Unknown device '{device}', expected one of: auto, cpu, cuda")


def build_session_options(intra_op_threads: Optional[int] = None) -> ort.SessionOptions:
    options = ort.SessionOptions()
    if intra_op_threads is not None:
        options.intra_op_num_threads = intra_op_threads
    return options


def _node_specs(nodes: list[Any]) -> list[TensorSpec]:
    return [TensorSpec(name=node.name, shape=tuple(node.shape)) for node in nodes]


class OnnxEncoderSession(EncoderSession):
    """An EncoderSession backed by onnxruntime.InferenceSession."""

    def __init__(
        self,
        model_path: Path,
        device: str = "cpu",
        token_output: str = DEFAULT_TOKEN_OUTPUT,
        pooled_output: str = DEFAULT_POOLED_OUTPUT,
        session_options: Optional[ort.SessionOptions] = None,
    ) -> None:
        if not model_path.is_file():
            raise EncoderLoadError(f"Encoder model not found: {model_path}")

        self._model_path = model_path
        self._token_output = token_output
        self._pooled_output = pooled_output
        self._providers = resolve_providers(device)
        self._lock = threading.Lock()
        self._closed = False

        options = session_options if session_options is not None else build_session_options()
        self._session: Optional[ort.InferenceSession] = None
        session = self._create_session(options, self._providers)
        self._dim, self._input_types = self._validate(session)
        self._session = session

        logger.info(
            "ONNX encoder loaded",
            extra={
                "path": str(model_path),
                "dim": self._dim,
                "providers": session.get_providers(),
            },
        )

    def _create_session(
        self,
        options: ort.SessionOptions,
        providers: list[str],
    ) -> ort.InferenceSession:
        try:
            return ort.InferenceSession(
                str(self._model_path),
                sess_options=options,
                providers=providers,
            )
        except Exception as err:
            raise EncoderLoadError(
                f"Failed to load model {self._model_path}, onnxruntime raised: {err}"
            ) from err

    def _validate(self, session: ort.InferenceSession) -> tuple[int, dict[str, Any]]:
        inputs = session.get_inputs()
        dim = validate_contract(
            _node_specs(inputs),
            _node_specs(session.get_outputs()),
            token_output=self._token_output,
            pooled_output=self._pooled_output,
        )

        input_types: dict[str, Any] = {}
        for node in inputs:
            dtype = _INTEGER_TYPES.get(node.type)
            if dtype is None:
                raise EncoderContractError(
                    f"Invalid model, expected input '{node.name}' to be an integer tensor, "
                    f"found {node.type}"
                )
            input_types[node.name] = dtype
        return dim, input_types

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def model_path(self) -> Path:
        return self._model_path

    def invoke(
        self,
        input_ids: np.ndarray,
        attention_mask: np.ndarray,
        token_type_ids: np.ndarray,
    ) -> EncoderOutput:
        session = self._session
        if self._closed or session is None:
            raise EncoderClosedError("ONNX encoder session is closed")

        feed = {
            INPUT_IDS: np.asarray(input_ids, dtype=self._input_types[INPUT_IDS]),
            ATTENTION_MASK: np.asarray(attention_mask, dtype=self._input_types[ATTENTION_MASK]),
            TOKEN_TYPE_IDS: np.asarray(token_type_ids, dtype=self._input_types[TOKEN_TYPE_IDS]),
        }

        try:
            token_raw, pooled_raw = session.run(
                [self._token_output, self._pooled_output],
                feed,
            )
        except Exception as err:
            raise EncoderInvocationError(f"ORT failed to execute: {err}") from err

        return unpack_outputs(token_raw, pooled_raw, feed[INPUT_IDS].shape[1], self._dim)

    def reconfigure(
        self,
        session_options: ort.SessionOptions,
        device: Optional[str] = None,
    ) -> None:
        """
        Rebuild the native session with new options (and optionally a new device).

        The rebuilt session goes through the same contract checks, and must
        report the same embedding dimension. Feature names were generated
        from it and can't change mid-process.

        Raises:
            EncoderClosedError: If the session was already closed.
            EncoderLoadError / EncoderContractError: If the rebuild fails. The
                previous session stays in place in that case.
        """
        with self._lock:
            if self._closed:
                raise EncoderClosedError("Cannot reconfigure a closed ONNX encoder session")

            providers = resolve_providers(device) if device is not None else self._providers
            session = self._create_session(session_options, providers)
            dim, input_types = self._validate(session)
            if dim != self._dim:
                raise EncoderContractError(
                    f"Reconfigured model reports embedding dimension {dim}, expected {self._dim}"
                )

            self._session = session
            self._input_types = input_types
            self._providers = providers

        logger.info(
            "ONNX encoder reconfigured",
            extra={"path": str(self._model_path), "providers": session.get_providers()},
        )

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._session = None
            self._closed = True
        logger.info("ONNX encoder closed", extra={"path": str(self._model_path)})
