"""Session endpoints: sign-in, refresh, sign-out, listing and revocation."""

from __future__ import annotations

import uuid

from flask import Blueprint, request

from accounts.api.deps import (
    authenticate_request,
    client_ip,
    get_services,
    json_body,
    json_response,
    timing,
    user_agent,
)
from accounts.schemas import (
    RefreshSchema,
    SessionPageSchema,
    SessionQuerySchema,
    SessionTokensSchema,
    SignInSchema,
)
from accounts.services._shared.errors import InvalidSessionId
from accounts.services.sessions.dto import RefreshIn, SessionListIn, SignInIn

bp = Blueprint("auth", __name__)

sign_in_schema = SignInSchema()
refresh_schema = RefreshSchema()
tokens_schema = SessionTokensSchema()
session_query_schema = SessionQuerySchema()
session_page_schema = SessionPageSchema()


@bp.post("/sign-in")
@timing
def sign_in():
    """Check credentials and open a session."""

    data = sign_in_schema.load(json_body())
    tokens = get_services().sessions.sign_in(
        SignInIn(
            username=data["username"],
            password=data["password"],
            ip=client_ip(),
            user_agent=user_agent(),
        )
    )
    return json_response({"data": tokens_schema.dump(tokens)})


@bp.post("/refresh")
@timing
def refresh():
    """Supersede the session bound to a refresh token."""

    data = refresh_schema.load(json_body())
    tokens = get_services().sessions.refresh(
        RefreshIn(refresh_token=data["refresh_token"], ip=client_ip(), user_agent=user_agent())
    )
    return json_response({"data": tokens_schema.dump(tokens)})


@bp.post("/sign-out")
@timing
def sign_out():
    identity = authenticate_request()
    get_services().sessions.sign_out(identity)
    return "", 204


@bp.get("/sessions")
@timing
def list_sessions():
    """Return one page of the caller's active sessions."""

    identity = authenticate_request()
    query = session_query_schema.load(request.args)
    page = get_services().sessions.list_sessions(identity.user_id, SessionListIn(**query))
    return json_response({"data": session_page_schema.dump(page)})


@bp.delete("/sessions")
@timing
def revoke_all_sessions():
    """Revoke every session of the caller, the current one included."""

    identity = authenticate_request()
    revoked = get_services().sessions.revoke(identity.user_id)
    return json_response({"data": {"revoked": revoked}})


@bp.delete("/sessions/<session_id>")
@timing
def revoke_session(session_id: str):
    identity = authenticate_request()
    try:
        parsed = uuid.UUID(session_id)
    except ValueError:
        raise InvalidSessionId() from None
    get_services().sessions.revoke(identity.user_id, parsed)
    return "", 204
