# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Builds a ready FeatureExtractor from a validated config.

This is the first thing that runs when a command needs features. It finds
the tokenizer.json and the encoder model on disk, validates both, and hands
back an extractor whose embedding dimension is already known.

The loader is strict. A tokenizer file with a missing field, a model with
the wrong outputs: it refuses to proceed. Nothing partially built escapes.
The tokenizer is loaded first since it's cheap; if anything fails after
the encoder opened, the encoder is closed again before the error propagates.

Backends are imported lazily so that an ONNX-only install never pays for
importing torch, and the other way round.
"""

import logging
from pathlib import Path

from bertfx.config.exceptions import ConfigValidationError
from bertfx.config.loader import resolve_relative
from bertfx.config.schema import BertFxConfig, EncoderConfig
from bertfx.encoder.interfaces import EncoderSession
from bertfx.extraction.engine.core import FeatureExtractor
from bertfx.logging.logger import get_logger
from bertfx.tokenizer.loader.core import load_tokenizer_config

logger: logging.Logger = get_logger(__name__)


def build_encoder(encoder_cfg: EncoderConfig, config_path: Path) -> EncoderSession:
    """
    Open the configured encoder backend.

    Raises:
        EncoderLoadError: The model file is missing or the runtime can't read it.
        EncoderContractError: The model doesn't match the input/output contract.
    """
    model_path = resolve_relative(encoder_cfg.model_path, config_path)

    if encoder_cfg.backend == "onnx":
        from bertfx.encoder.onnx.core import OnnxEncoderSession, build_session_options

        session: EncoderSession = OnnxEncoderSession(
            model_path,
            device=encoder_cfg.device,
            token_output=encoder_cfg.token_output,
            pooled_output=encoder_cfg.pooled_output,
            session_options=build_session_options(encoder_cfg.intra_op_threads),
        )
    else:
        import torch

        from bertfx.encoder.torchscript.core import TorchEncoderSession

        if encoder_cfg.intra_op_threads is not None:
            torch.set_num_threads(encoder_cfg.intra_op_threads)

        session = TorchEncoderSession.from_file(
            model_path,
            device=encoder_cfg.device,
            token_output=encoder_cfg.token_output,
            pooled_output=encoder_cfg.pooled_output,
        )

    logger.info(
        "Encoder contract validated",
        extra={
            "backend": encoder_cfg.backend,
            "dim": session.dim,
            "device": encoder_cfg.device,
        },
    )
    return session


def load_extractor(config: BertFxConfig, config_path: Path) -> FeatureExtractor:
    """
    Load the tokenizer and the encoder and wire them into a FeatureExtractor.

    Args:
        config: A validated config with both tokenizer and encoder sections.
        config_path: The file the config came from; relative paths resolve
                     against its directory.

    Raises:
        ConfigValidationError: If the tokenizer or encoder section is missing.
        ConfigError subclasses: If either artifact fails validation.
    """
    if config.tokenizer is None:
        raise ConfigValidationError(
            f"Config {config_path} has no 'tokenizer' section, cannot extract features"
        )
    if config.encoder is None:
        raise ConfigValidationError(
            f"Config {config_path} has no 'encoder' section, cannot extract features"
        )

    tokenizer_config = load_tokenizer_config(resolve_relative(config.tokenizer.path, config_path))
    encoder = build_encoder(config.encoder, config_path)

    try:
        extractor = FeatureExtractor(tokenizer_config, encoder, config.extraction)
    except BaseException:
        encoder.close()
        raise

    logger.info(
        "Feature extractor ready",
        extra={
            "vocab_size": len(tokenizer_config.vocabulary),
            "dim": extractor.dim,
            "max_length": extractor.max_length,
            "pooling": extractor.pooling.value,
        },
    )
    return extractor
