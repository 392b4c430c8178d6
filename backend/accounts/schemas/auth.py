"""Session and token Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from accounts.schemas.common import PageMetaSchema, PaginationQuerySchema


class SignInSchema(Schema):
    """Input payload for sign-in."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=32))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload for refreshing a session."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class SessionTokensSchema(Schema):
    """Response payload of sign-in and refresh."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(required=True)
    expires_in = fields.Integer(required=True)
    username = fields.String(required=True)
    user_id = fields.UUID(required=True)
    session_id = fields.UUID(required=True)


class SessionSchema(Schema):
    """Public representation of an active session."""

    id = fields.UUID(required=True)
    ip = fields.String(required=True)
    os = fields.String(required=True)
    device = fields.String(required=True)
    browser = fields.String(required=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)


class SessionPageSchema(PageMetaSchema):
    items = fields.List(fields.Nested(SessionSchema), required=True)


class SessionQuerySchema(PaginationQuerySchema):
    """Query parameters of the session listing: pagination plus substring filters."""

    ip = fields.String(load_default=None, validate=validate.Length(min=1, max=64))
    os = fields.String(load_default=None, validate=validate.Length(min=1, max=64))
    device = fields.String(load_default=None, validate=validate.Length(min=1, max=64))
    browser = fields.String(load_default=None, validate=validate.Length(min=1, max=64))
