# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Custom exceptions for the configuration system.

Everything that can go wrong while the extractor is being put together lives
here: the YAML config, the tokenizer file, and the encoder's input/output
contract. All of them derive from ConfigError, so callers can tell a broken
setup apart from a single request that failed at runtime.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a config file cannot be read from disk or parsed as YAML."""


class ConfigValidationError(ConfigError):
    """
    Raised when a config file parses fine but fails schema validation.
    This covers missing required fields, type mismatches, out-of-range values,
    and any other structural problem.
    """


class TokenizerConfigError(ConfigError):
    """
    Raised when a tokenizer.json file is missing a required field or carries
    a value we can't use (empty unknown token, non-integer vocab id, ...).
    The message always names the offending field.
    """


class EncoderLoadError(ConfigError):
    """Raised when the encoder model file can't be opened by its runtime."""


class EncoderContractError(ConfigError):
    """
    Raised when the encoder doesn't expose the expected inputs and outputs.

    The message names the offending input or output and the shape we
    actually observed, so the broken export can be fixed without guessing.
    """
