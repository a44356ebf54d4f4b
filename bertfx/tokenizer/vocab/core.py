# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Vocabulary and tokenizer configuration values.

Both are built exactly once, when the tokenizer file is loaded, and are never
mutated afterwards. That's what makes it safe to share one tokenizer across
threads: nothing in here can change after construction.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from bertfx.config.exceptions import TokenizerConfigError

DEFAULT_CONTINUATION_PREFIX = "##"


class Vocabulary(Mapping[str, int]):
    """
    Read-only mapping from subword strings to integer ids, with reverse lookup.

    Ids must be non-negative and unique. Uniqueness is what makes the
    token -> id -> token round trip hold for every entry.
    """

    __slots__ = ("_token_ids", "_id_tokens")

    def __init__(self, token_ids: Mapping[str, int]) -> None:
        if not token_ids:
            raise ValueError("Vocabulary must contain at least one token")

        forward: dict[str, int] = {}
        reverse: dict[int, str] = {}
        for token, token_id in token_ids.items():
            if isinstance(token_id, bool) or not isinstance(token_id, int) or token_id < 0:
                raise ValueError(
                    f"Vocabulary id for '{token}' must be a non-negative integer, got {token_id!r}"
                )
            if token_id in reverse:
                raise ValueError(
                    f"Vocabulary id {token_id} is assigned to both '{reverse[token_id]}' and '{token}'"
                )
            forward[token] = token_id
            reverse[token_id] = token

        self._token_ids = MappingProxyType(forward)
        self._id_tokens = MappingProxyType(reverse)

    def __getitem__(self, token: str) -> int:
        return self._token_ids[token]

    def __iter__(self) -> Iterator[str]:
        return iter(self._token_ids)

    def __len__(self) -> int:
        return len(self._token_ids)

    def __contains__(self, token: object) -> bool:
        return token in self._token_ids

    def __repr__(self) -> str:
        return f"Vocabulary(size={len(self)})"

    def token_id(self, token: str) -> Optional[int]:
        """Id for `token`, or None when it isn't in the vocabulary."""
        return self._token_ids.get(token)

    def token_for(self, token_id: int) -> str:
        """
        Reverse lookup: the token string that owns `token_id`.

        Raises:
            KeyError: If no token has that id.
        """
        try:
            return self._id_tokens[token_id]
        except KeyError:
            raise KeyError(f"No token with id {token_id}") from None

    def tokens(self) -> frozenset[str]:
        return frozenset(self._token_ids)


@dataclass(frozen=True)
class TokenizerConfig:
    """
    Everything the WordPiece tokenizer and the input assembler need.

    Construction validates the one invariant the loader can't express as a
    schema: the unknown, classification and separator tokens must all have
    vocabulary entries, since every assembled input references them.
    """

    vocabulary: Vocabulary
    unknown_token: str
    classification_token: str
    separator_token: str
    lowercase: bool
    strip_accents: bool
    max_input_chars_per_word: int
    continuing_subword_prefix: str = DEFAULT_CONTINUATION_PREFIX

    def __post_init__(self) -> None:
        if self.max_input_chars_per_word <= 0:
            raise TokenizerConfigError(
                "max_input_chars_per_word must be positive, "
                f"got {self.max_input_chars_per_word}"
            )
        if not self.continuing_subword_prefix:
            raise TokenizerConfigError("continuing_subword_prefix must not be empty")

        required = {
            "unknown_token": self.unknown_token,
            "classification_token": self.classification_token,
            "separator_token": self.separator_token,
        }
        for field_name, token in required.items():
            if not token:
                raise TokenizerConfigError(f"{field_name} must not be empty")
            if token not in self.vocabulary:
                raise TokenizerConfigError(
                    f"{field_name} '{token}' has no entry in the vocabulary"
                )

    @property
    def unknown_id(self) -> int:
        return self.vocabulary[self.unknown_token]

    @property
    def classification_id(self) -> int:
        return self.vocabulary[self.classification_token]

    @property
    def separator_id(self) -> int:
        return self.vocabulary[self.separator_token]

    def id_for(self, token: str) -> int:
        """Vocabulary id for `token`, falling back to the unknown token's id."""
        token_id = self.vocabulary.token_id(token)
        if token_id is None:
            return self.unknown_id
        return token_id
