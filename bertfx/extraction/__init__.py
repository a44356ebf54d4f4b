# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Feature extraction on top of the tokenizer and an encoder session.

Subsystems:
  - engine: FeatureExtractor, text in and Examples out
  - loader: builds an extractor from a validated config
  - metrics: request counters and latency
  - export: atomic JSON output
"""
