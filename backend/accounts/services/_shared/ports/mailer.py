from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class OutgoingMail:
    """
    Plain-text message handed to a mailer.

    :param to: Recipient address.
    :param subject: Subject line.
    :param body: Plain-text body.
    """

    to: str
    subject: str
    body: str


class Mailer(Protocol):
    """Port for delivering transactional email.

    Implementations raise on delivery failure so callers can roll back.
    """

    def send(self, mail: OutgoingMail) -> None: ...
