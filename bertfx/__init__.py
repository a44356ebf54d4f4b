# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
bertfx: BERT feature extraction.

Text is tokenized with WordPiece, run through an exported BERT encoder
(ONNX Runtime or TorchScript) and turned into fixed-width feature vectors,
either one per document or one per token.
"""

__version__ = "0.1.0"
