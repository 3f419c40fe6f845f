"""
Shared helpers used across blueprints.

Builds the per-request record store and services, and holds the role
decorators.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, jsonify, request
from flask_login import current_user

from allocator import Allocator
from availability import AvailabilityReporter
from chat import ChatLog
from database import get_db
from db_stores import SQLiteRecordStore
from errors import ValidationError
from extensions import login_manager
from ledger import SubmissionLedger
from models import Role


def get_store():
    """Return the record store for this request.

    The memory backend is owned by the app; the SQLite backend wraps the
    request's connection.
    """
    if current_app.config.get("STORE_BACKEND", "sqlite") == "memory":
        return current_app.extensions["record_store"]
    return SQLiteRecordStore(get_db())


def get_allocator() -> Allocator:
    return Allocator(get_store())


def get_availability() -> AvailabilityReporter:
    return AvailabilityReporter(get_store())


def get_ledger() -> SubmissionLedger:
    return SubmissionLedger(get_store())


def get_chat_log() -> ChatLog:
    return ChatLog(get_store())


def current_user_id() -> str:
    return current_user.id


def json_body() -> dict:
    """Request body as a dict: JSON when sent, otherwise form fields."""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.")
        return data
    return request.form.to_dict()


def poll_response(payload: Any, view: str):
    """jsonify ``payload`` and advertise the poll interval for ``view``."""
    resp = jsonify(payload)
    interval = current_app.config.get("POLL_INTERVALS", {}).get(view)
    if interval:
        resp.headers["X-Poll-Interval"] = str(interval)
    return resp


def admin_required(f: Callable) -> Callable:
    """Decorator that requires an authenticated ADMIN."""
    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if current_user.role != Role.ADMIN:
            return jsonify({"error": "Admin access required.", "code": "Forbidden"}), 403
        return f(*args, **kwargs)
    return decorated


def student_required(f: Callable) -> Callable:
    """Decorator that requires an authenticated STUDENT."""
    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if current_user.role != Role.STUDENT:
            return jsonify({"error": "Student access required.", "code": "Forbidden"}), 403
        return f(*args, **kwargs)
    return decorated


def can_access_group(group) -> bool:
    return current_user.role == Role.ADMIN or current_user.id in group.member_ids
