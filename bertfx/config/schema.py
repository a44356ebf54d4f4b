# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for bertfx.

Every config section gets its own frozen pydantic model. Frozen means once
you create it, you cannot mutate it. The extractor is assembled once at
startup and then shared across requests, so a config that changes under it
would be a bug.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from bertfx.pooling.core import PoolingMode


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings that apply to the entire system.

    Only observability and project identity live here. Nothing in the
    extraction path is random, so there is no seed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="bertfx", description="Human-readable project identifier"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Verbosity applied to every bertfx logger",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class TokenizerSection(BaseModel):
    """Where to find the HuggingFace tokenizer.json the encoder was exported with."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    path: str = Field(
        description="Path to tokenizer.json, relative to the config file's directory",
    )


class EncoderConfig(BaseModel):
    """
    The exported transformer and how to run it.

    The output names default to what the HuggingFace ONNX export tool
    produces for BERT: output_0 is the per-token embedding tensor and
    output_1 is the pooled [CLS] vector.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    backend: Literal["onnx", "torchscript"] = Field(
        default="onnx",
        description="Runtime used to execute the encoder",
    )
    model_path: str = Field(
        description="Path to the model file, relative to the config file's directory",
    )
    device: Literal["cpu", "cuda", "auto"] = Field(
        default="cpu",
        description="'auto' picks CUDA when it's available, otherwise CPU",
    )
    token_output: str = Field(
        default="output_0",
        description="Name of the rank-3 [1, L, D] per-token embedding output",
    )
    pooled_output: str = Field(
        default="output_1",
        description="Name of the rank-2 [1, D] pooled output",
    )
    intra_op_threads: Optional[int] = Field(
        default=None,
        ge=1,
        description="Thread count for a single encoder call; None leaves the runtime default",
    )


class ExtractionConfig(BaseModel):
    """How token sequences turn into features."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    max_length: int = Field(
        default=512,
        ge=3,
        description="Maximum length in wordpieces, including [CLS] and [SEP]",
    )
    pooling: PoolingMode = Field(
        default=PoolingMode.CLS,
        description="How a single embedding is produced for the whole input",
    )
    strip_sentence_markers: bool = Field(
        default=True,
        description="Drop the [CLS] and [SEP] rows when building sequence examples",
    )
    unknown_label: str = Field(
        default="unknown",
        description="Label given to examples whose ground truth wasn't supplied",
    )


class BertFxConfig(BaseModel):
    """
    Top-level config container.

    Only `global:` is required. Commands that need a tokenizer or an encoder
    check that their sections are present and refuse to run otherwise.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    tokenizer: Optional[TokenizerSection] = Field(default=None)
    encoder: Optional[EncoderConfig] = Field(default=None)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
