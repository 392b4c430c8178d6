"""Helpers shared by the HTTP integration tests."""

from __future__ import annotations

import pytest

from tests.factories.user import DEFAULT_PASSWORD, AccountFactory
from tests.helpers.api import API, BROWSER_UA


@pytest.fixture()
def account():
    """Persisted account; returns plain values so they survive request teardown."""
    user = AccountFactory()
    return {"id": str(user.id), "username": user.username, "password": DEFAULT_PASSWORD}


@pytest.fixture()
def sign_in(client):
    """Sign ``account`` in through the API and return the ``data`` payload."""

    def _sign_in(account, **headers):
        resp = client.post(
            f"{API}/auth/sign-in",
            json={"username": account["username"], "password": account["password"]},
            headers={"User-Agent": BROWSER_UA, **headers},
        )
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["data"]

    return _sign_in
