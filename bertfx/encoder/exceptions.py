# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime errors raised while running the encoder.

These are per-request failures: the model loaded fine and passed its
contract checks, but this particular call didn't work. They're kept apart
from bertfx.config.exceptions on purpose, so a caller can catch one family
without swallowing the other.
"""


class EncoderError(RuntimeError):
    """Base for all encoder runtime errors."""


class EncoderInvocationError(EncoderError):
    """
    The native runtime failed to execute, or returned something that doesn't
    match the validated contract (wrong shape, wrong sequence length).
    Never retried.
    """


class EncoderClosedError(EncoderError):
    """The session was invoked after close()."""
