"""
User Authentication — Flask-Login blueprint.

Provides register, login, logout and "me" JSON routes. Passwords are hashed
with werkzeug.security. ``register_user`` and ``authenticate`` hold the rules
and can be called without a request.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify
from flask_login import UserMixin, current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash, generate_password_hash

from errors import DuplicateEmail, InvalidAdminEmail, InvalidCredentials, ValidationError
from extensions import limiter, login_manager
from helpers import get_store, json_body
from models import Role, User

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


class SessionUser(UserMixin):
    """Wraps a stored User for Flask-Login."""

    def __init__(self, user: User):
        self.record = user
        self.id = user.id
        self.name = user.name
        self.email = user.email
        self.role = user.role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@login_manager.user_loader
def load_user(user_id):
    user = get_store().get_user(user_id)
    return SessionUser(user) if user else None


@login_manager.unauthorized_handler
def _unauthorized():
    return jsonify({"error": "Login required.", "code": "Unauthorized"}), 401


def _validate_password(password: str) -> str | None:
    """Return an error message if password is too weak, else None."""
    if len(password) < 8:
        return "Password must be at least 8 characters."
    if not any(c.isupper() for c in password):
        return "Password must contain at least one uppercase letter."
    if not any(c.islower() for c in password):
        return "Password must contain at least one lowercase letter."
    if not any(c.isdigit() for c in password):
        return "Password must contain at least one digit."
    return None


def register_user(store, name: str, email: str, password: str,
                  role: str = Role.STUDENT, admin_marker: str = "seacet") -> User:
    name = (name or "").strip()
    email = (email or "").strip().lower()
    password = password or ""

    if not name or not email or not password:
        raise ValidationError("Name, email and password are required.")
    if role not in Role.ALL:
        raise ValidationError(f"Unknown role: {role}")

    pw_error = _validate_password(password)
    if pw_error:
        raise ValidationError(pw_error)

    if role == Role.ADMIN and admin_marker.lower() not in email:
        raise InvalidAdminEmail(f'Admin email must contain "{admin_marker}".')

    # Hash before taking the store's write lock
    user = User(
        name=name,
        email=email,
        password_hash=generate_password_hash(password),
        role=role,
    )
    with store.transaction():
        if store.find_user_by_email(email) is not None:
            raise DuplicateEmail()
        store.add_user(user)
    logger.info("Registered %s %s (%s)", role.lower(), user.id, email)
    return user


def authenticate(store, email: str, password: str) -> User:
    user = store.find_user_by_email(email or "")
    if user is None or not check_password_hash(user.password_hash, password or ""):
        logger.info("Login failed for %s", (email or "").strip().lower())
        raise InvalidCredentials()
    return user


@auth_bp.route("/api/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    data = json_body()
    user = register_user(
        get_store(),
        name=data.get("name", ""),
        email=data.get("email", ""),
        password=data.get("password", ""),
        role=str(data.get("role", Role.STUDENT)).upper(),
        admin_marker=current_app.config.get("ADMIN_EMAIL_MARKER", "seacet"),
    )
    login_user(SessionUser(user), remember=True)
    return jsonify({"success": True, "user": user.to_dict()}), 201


@auth_bp.route("/api/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    data = json_body()
    user = authenticate(get_store(), data.get("email", ""), data.get("password", ""))
    login_user(SessionUser(user), remember=True)
    logger.info("Login %s", user.id)
    return jsonify({"success": True, "user": user.to_dict()})


@auth_bp.route("/api/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@auth_bp.route("/api/me")
@login_required
def me():
    """Fresh user record; clients re-read this to resync preferences_locked."""
    user = get_store().get_user(current_user.id)
    return jsonify({"user": user.to_dict()})
