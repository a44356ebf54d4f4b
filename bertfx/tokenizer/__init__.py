# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
WordPiece tokenization for bertfx.

Subsystems:
  - vocab: immutable vocabulary and tokenizer settings
  - loader: reads a HuggingFace tokenizer.json into those settings
  - basic: whitespace, punctuation and CJK splitting with normalization
  - wordpiece: greedy longest-match subword splitting
  - metrics: unknown-token rate and fragmentation over sample text
"""
