"""Group chat routes. Clients poll the GET route; there is no push."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from errors import ValidationError
from helpers import can_access_group, get_allocator, get_chat_log, json_body, poll_response

bp = Blueprint("chat", __name__)

MAX_MESSAGE_LENGTH = 2000


@bp.route("/api/groups/<group_id>/chat")
@login_required
def get_chat(group_id: str):
    group = get_allocator().get_group(group_id)
    if not can_access_group(group):
        return jsonify({"error": "Not a member of this group.", "code": "Forbidden"}), 403
    messages = get_chat_log().get_group_chat(group_id)
    return poll_response({"messages": [m.to_dict() for m in messages]}, "chat")


@bp.route("/api/groups/<group_id>/chat", methods=["POST"])
@login_required
def send_message(group_id: str):
    group = get_allocator().get_group(group_id)
    if not can_access_group(group):
        return jsonify({"error": "Not a member of this group.", "code": "Forbidden"}), 403

    message = str(json_body().get("message", "")).strip()
    if not message:
        raise ValidationError("Message cannot be empty.")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message exceeds {MAX_MESSAGE_LENGTH} characters.")

    msg = get_chat_log().send_message(group_id, current_user.id, current_user.name, message)
    return jsonify({"success": True, "message": msg.to_dict()}), 201
