"""User-agent parsing into the client metadata stored on session rows."""

from __future__ import annotations

from dataclasses import dataclass

from ua_parser import user_agent_parser

UNKNOWN = "Other"


@dataclass(frozen=True, slots=True)
class ClientInfo:
    """
    Client metadata captured when a session is created.

    :param ip: Remote address as seen by the application.
    :param os: Operating system family, e.g. ``"Mac OS X"``.
    :param device: Device family, e.g. ``"iPhone"``.
    :param browser: Browser family and major version, e.g. ``"Firefox 124"``.
    """

    ip: str
    os: str
    device: str
    browser: str


def _family(part: dict[str, str | None]) -> str:
    return part.get("family") or UNKNOWN


def parse_client(ip: str | None, user_agent: str | None) -> ClientInfo:
    """Build :class:`ClientInfo` from a remote address and a ``User-Agent`` header."""
    parsed = user_agent_parser.Parse(user_agent or "")
    agent = parsed.get("user_agent", {})
    browser = _family(agent)
    if agent.get("major"):
        browser = f"{browser} {agent['major']}"
    return ClientInfo(
        ip=(ip or "")[:64],
        os=_family(parsed.get("os", {}))[:128],
        device=_family(parsed.get("device", {}))[:128],
        browser=browser[:128],
    )
