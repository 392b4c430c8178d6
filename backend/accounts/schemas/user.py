"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

USERNAME_LENGTH = validate.Length(min=3, max=16)
PASSWORD_LENGTH = validate.Length(min=6, max=32)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    username = fields.String(required=True, validate=USERNAME_LENGTH)
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=PASSWORD_LENGTH)


class ActivateEmailSchema(Schema):
    user_id = fields.UUID(required=True)
    token = fields.UUID(required=True)


class ChangePasswordSchema(Schema):
    """Input payload for changing the password of the signed-in user."""

    current_password = fields.String(required=True, validate=validate.Length(min=1, max=128))
    new_password = fields.String(required=True, validate=PASSWORD_LENGTH)


class ChangeUsernameSchema(Schema):
    username = fields.String(required=True, validate=USERNAME_LENGTH)


class ResetPasswordRequestSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=1, max=32))


class ResetPasswordSchema(Schema):
    """Input payload for completing a password reset."""

    token = fields.String(required=True, validate=validate.Length(min=1))
    new_password = fields.String(required=True, validate=PASSWORD_LENGTH)


class UserSchema(Schema):
    """Public representation of an account."""

    id = fields.UUID(required=True)
    username = fields.String(required=True)
    email = fields.String(allow_none=True)
    email_active = fields.Boolean(required=True)
    created_at = fields.DateTime(required=True)
