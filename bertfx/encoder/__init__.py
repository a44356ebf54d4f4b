# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Encoder sessions for exported BERT models.

The rest of bertfx only sees EncoderSession from interfaces.py. The onnx/
and torchscript/ backends both check the same input/output contract at
load time, so a wrong export fails before the first request.
"""
