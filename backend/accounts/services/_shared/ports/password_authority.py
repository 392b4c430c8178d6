from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class PasswordDigest:
    """
    Result of hashing a password.

    :param hash: Encoded hash string, self-describing (algorithm, parameters, salt).
    :type hash: str
    :param salt: Base64 encoding of the random salt used.
    :type salt: str
    """

    hash: str
    salt: str


class PasswordAuthority(Protocol):
    """Port for salting, hashing and verifying passwords."""

    def hash(self, plaintext: str) -> PasswordDigest: ...

    def verify(self, plaintext: str, stored_hash: str) -> bool: ...
