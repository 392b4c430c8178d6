"""Factory Boy definition for :class:`UserSession` rows."""

from __future__ import annotations

import factory

from accounts.models.session import TokenType, UserSession
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class UserSessionFactory(BaseFactory):
    """Session row holding an opaque token; real tokens come from the services."""

    class Meta:
        model = UserSession

    user = factory.SubFactory(UserFactory)
    token = factory.Sequence(lambda n: f"opaque-token-{n}")
    token_type = TokenType.ACCESS
    ip = "203.0.113.10"
    os = "Linux"
    device = "Other"
    browser = "Firefox 124"
    active = True
