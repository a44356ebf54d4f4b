# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Basic pre-tokenization: the step before any vocabulary lookup.

Text is cleaned (control characters dropped, every kind of whitespace mapped
to a plain space), CJK ideographs are isolated, and the result is split on
whitespace. Each piece is then optionally lowercased and stripped of accents,
and finally split again so every punctuation character stands alone.

  "Héllo, wörld!"  ->  ["hello", ",", "world", "!"]   (lowercase + strip_accents)
"""

import unicodedata
from dataclasses import dataclass

# Ranges from the CJK Unified Ideographs blocks. Korean and Japanese
# syllabaries are not included, they're written with spaces between words.
_CJK_RANGES = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0xF900, 0xFAFF),
    (0x2F800, 0x2FA1F),
)


def is_whitespace(char: str) -> bool:
    if char in (" ", "\t", "\n", "\r"):
        return True
    return unicodedata.category(char) == "Zs"


def is_control(char: str) -> bool:
    # Tab, newline and carriage return count as whitespace, not control.
    if char in ("\t", "\n", "\r"):
        return False
    return unicodedata.category(char) in ("Cc", "Cf")


def is_punctuation(char: str) -> bool:
    """
    ASCII symbols like "$" and "^" aren't Unicode punctuation, but BERT
    vocabularies treat them as punctuation, so all non-alphanumeric ASCII
    counts here too.
    """
    cp = ord(char)
    if 33 <= cp <= 47 or 58 <= cp <= 64 or 91 <= cp <= 96 or 123 <= cp <= 126:
        return True
    return unicodedata.category(char).startswith("P")


def is_cjk(char: str) -> bool:
    cp = ord(char)
    return any(low <= cp <= high for low, high in _CJK_RANGES)


def strip_accents(text: str) -> str:
    """Decompose to NFD and drop the combining marks: "é" -> "e"."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if unicodedata.category(char) != "Mn")


@dataclass(frozen=True)
class BasicTokenizer:
    """Whitespace, punctuation and CJK splitting with optional case/accent folding."""

    lowercase: bool = False
    strip_accents: bool = False

    def _clean(self, text: str) -> str:
        pieces: list[str] = []
        for char in text:
            cp = ord(char)
            if cp == 0 or cp == 0xFFFD or is_control(char):
                continue
            if is_whitespace(char):
                pieces.append(" ")
            elif is_cjk(char):
                pieces.append(f" {char} ")
            else:
                pieces.append(char)
        return "".join(pieces)

    def _split_punctuation(self, word: str) -> list[str]:
        output: list[str] = []
        current: list[str] = []
        for char in word:
            if is_punctuation(char):
                if current:
                    output.append("".join(current))
                    current = []
                output.append(char)
            else:
                current.append(char)
        if current:
            output.append("".join(current))
        return output

    def split(self, text: str) -> list[str]:
        """Split `text` into basic tokens. Never fails; empty input gives []."""
        tokens: list[str] = []
        for word in self._clean(text).split():
            if self.lowercase:
                word = word.lower()
            if self.strip_accents:
                word = strip_accents(word)
            tokens.extend(self._split_punctuation(word))
        return tokens
