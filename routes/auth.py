import hashlib
import secrets
from datetime import datetime, timedelta

from flask import Blueprint, current_app, request, jsonify
from flask_jwt_extended import (
    create_access_token,
    jwt_required,
    set_access_cookies,
    unset_jwt_cookies,
)
from sqlalchemy import func

from extensions import db
from mailer import EmailDeliveryError, send_email
from models import EmployeeStatus, RoleEnum, User
from routes.common import clean_string, current_user
from schemas import UserSchema

bp = Blueprint("auth", __name__, url_prefix="/api/auth")
user_schema = UserSchema()

MIN_PASSWORD_LENGTH = 6
RESET_REQUESTED_MSG = "If that email is registered, a password reset link has been sent."


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _issue_token(user: User):
    token = create_access_token(identity=str(user.id))
    response = jsonify(access_token=token, token=token, role=user.role.value, user=user_schema.dump(user))
    set_access_cookies(response, token)
    return response


@bp.post("/login")
def login():
    payload = request.get_json(silent=True)
    if not payload:
        payload = request.form.to_dict() if request.form else {}

    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""

    if not email or not password:
        return jsonify({"msg": "Email and password are required"}), 400

    u = User.query.filter(func.lower(User.email) == email).first()
    if not u or not u.check_password(password) or not u.active:
        return jsonify({"msg": "Invalid email or password"}), 401

    return _issue_token(u)


@bp.post("/signup")
def signup():
    data = request.get_json(silent=True) or {}
    first_name = clean_string(data.get("firstName"))
    last_name = clean_string(data.get("lastName"))
    email = clean_string(data.get("email")).lower()
    password = data.get("password") or ""

    if not first_name or not email or not password:
        return jsonify({"msg": "First name, email, and password are required"}), 400

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({"msg": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    if User.query.filter(func.lower(User.email) == email).first():
        return jsonify({"msg": "Email already registered"}), 400

    u = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        role=RoleEnum.employee,
        status=EmployeeStatus.ACTIVE,
        active=True,
    )
    u.set_password(password)
    db.session.add(u)
    db.session.commit()

    response = _issue_token(u)
    return response, 201


@bp.get("/me")
@jwt_required()
def me():
    u = current_user()
    if u is None:
        return jsonify({"msg": "User not found"}), 404
    return jsonify(user_schema.dump(u))


@bp.post("/logout")
def logout():
    response = jsonify({"msg": "Logged out"})
    unset_jwt_cookies(response)
    return response


@bp.post("/forgot-password")
def forgot_password():
    data = request.get_json(silent=True) or {}
    email = clean_string(data.get("email")).lower()
    if not email:
        return jsonify({"msg": "Email is required"}), 400

    u = User.query.filter(func.lower(User.email) == email).first()
    if not u or not u.active:
        return jsonify({"msg": RESET_REQUESTED_MSG})

    token = secrets.token_urlsafe(32)
    lifetime = timedelta(hours=current_app.config.get("PASSWORD_RESET_TOKEN_HOURS", 1))
    u.reset_token_hash = _hash_reset_token(token)
    u.reset_token_expires_at = datetime.utcnow() + lifetime
    db.session.commit()

    frontend_url = current_app.config.get("FRONTEND_URL", "").rstrip("/")
    reset_link = f"{frontend_url}/reset-password/{token}"
    body = (
        f"Hello {u.first_name},\n\n"
        "We received a request to reset your HRMS password.\n"
        f"Open the link below to choose a new password:\n{reset_link}\n\n"
        "If you did not request this, you can ignore this email."
    )

    try:
        send_email(subject="Reset your password", recipient=u.email, body=body, context="password reset")
    except EmailDeliveryError as exc:
        current_app.logger.warning("Password reset email for user %s was not delivered: %s", u.id, exc.user_message)

    return jsonify({"msg": RESET_REQUESTED_MSG})


@bp.post("/reset-password")
def reset_password():
    data = request.get_json(silent=True) or {}
    token = clean_string(data.get("token"))
    password = data.get("password") or ""

    if not token or not password:
        return jsonify({"msg": "Token and password are required"}), 400

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({"msg": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    u = User.query.filter_by(reset_token_hash=_hash_reset_token(token)).first()
    if not u or not u.reset_token_expires_at or u.reset_token_expires_at < datetime.utcnow():
        return jsonify({"msg": "Reset link is invalid or has expired"}), 400

    u.set_password(password)
    u.reset_token_hash = None
    u.reset_token_expires_at = None
    db.session.commit()
    return jsonify({"msg": "Password has been reset"})
