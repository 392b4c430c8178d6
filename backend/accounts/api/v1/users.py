"""User endpoints: registration, activation, profile and password flows."""

from __future__ import annotations

from flask import Blueprint

from accounts.api.deps import (
    authenticate_request,
    get_services,
    json_body,
    json_response,
    timing,
)
from accounts.schemas import (
    ActivateEmailSchema,
    ChangePasswordSchema,
    ChangeUsernameSchema,
    RegisterSchema,
    ResetPasswordRequestSchema,
    ResetPasswordSchema,
    UserSchema,
)
from accounts.services.identity.dto import (
    ActivateEmailIn,
    PasswordChangeIn,
    PasswordResetIn,
    RegisterIn,
)

bp = Blueprint("users", __name__)

user_schema = UserSchema()
register_schema = RegisterSchema()
activate_schema = ActivateEmailSchema()
change_password_schema = ChangePasswordSchema()
change_username_schema = ChangeUsernameSchema()
reset_request_schema = ResetPasswordRequestSchema()
reset_schema = ResetPasswordSchema()


@bp.post("")
@timing
def register():
    """Register a new user and email the activation link."""

    data = register_schema.load(json_body())
    user = get_services().identity.register(RegisterIn(**data))
    return json_response({"data": user_schema.dump(user)}, status=201)


@bp.patch("/activate")
@timing
def activate_email():
    data = activate_schema.load(json_body())
    get_services().identity.activate_email(ActivateEmailIn(**data))
    return "", 204


@bp.get("/me")
@timing
def me():
    """Return the authenticated account."""

    identity = authenticate_request()
    user = get_services().identity.me(identity.user_id)
    return json_response({"data": user_schema.dump(user)})


@bp.patch("/me/password")
@timing
def change_password():
    identity = authenticate_request()
    data = change_password_schema.load(json_body())
    get_services().identity.change_password(identity.user_id, PasswordChangeIn(**data))
    return "", 204


@bp.patch("/me/username")
@timing
def change_username():
    identity = authenticate_request()
    data = change_username_schema.load(json_body())
    user = get_services().identity.change_username(identity.user_id, data["username"])
    return json_response({"data": user_schema.dump(user)})


@bp.post("/password-reset")
@timing
def request_password_reset():
    """Email a password reset link to the owner of ``username``."""

    data = reset_request_schema.load(json_body())
    get_services().identity.request_password_reset(data["username"])
    return "", 204


@bp.put("/password-reset")
@timing
def reset_password():
    data = reset_schema.load(json_body())
    get_services().identity.reset_password(PasswordResetIn(**data))
    return "", 204
