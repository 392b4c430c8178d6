"""argon2-cffi adapter implementing the password authority port."""

from __future__ import annotations

import base64
import secrets

from argon2 import PasswordHasher, Type
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

from accounts.services._shared.errors import PasswordHashingFailure
from accounts.services._shared.ports.password_authority import PasswordAuthority, PasswordDigest


class Argon2PasswordAuthority(PasswordAuthority):
    """
    Argon2id hashing with a fresh random salt per call.

    Defaults follow argon2-cffi (RFC 9106 low-memory profile), which lands in
    the tens of milliseconds on server hardware.

    :param time_cost: Number of iterations.
    :param memory_cost: Memory usage in KiB.
    :param parallelism: Number of lanes.
    """

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost: int = 65_536,
        parallelism: int = 4,
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )

    def hash(self, plaintext: str) -> PasswordDigest:
        """
        Hash ``plaintext`` with a newly drawn salt.

        :raises PasswordHashingFailure: If the argon2 backend fails.
        """
        salt = secrets.token_bytes(self._hasher.salt_len)
        try:
            encoded = self._hasher.hash(plaintext, salt=salt)
        except HashingError as exc:
            raise PasswordHashingFailure() from exc
        return PasswordDigest(
            hash=encoded,
            salt=base64.b64encode(salt).decode("ascii").rstrip("="),
        )

    def verify(self, plaintext: str, stored_hash: str) -> bool:
        """
        Return ``True`` only when ``plaintext`` matches ``stored_hash``.

        Mismatches and unparsable hashes both yield ``False``.
        """
        try:
            return self._hasher.verify(stored_hash, plaintext)
        except (VerificationError, InvalidHashError):
            return False

