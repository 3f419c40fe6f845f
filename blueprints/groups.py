"""Topic catalog, availability, group join/rename, and instructor group views."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from errors import AlreadyLocked, OptionNotFound, ValidationError
from helpers import (
    admin_required,
    can_access_group,
    current_user_id,
    get_allocator,
    get_availability,
    get_ledger,
    get_store,
    json_body,
    poll_response,
    student_required,
)
from models import Role

logger = logging.getLogger(__name__)

bp = Blueprint("groups", __name__)


def _parse_option_id(raw) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("option_id must be an integer.")


# ── Topics ────────────────────────────────────────────────


@bp.route("/api/options")
@login_required
def list_options():
    options = get_store().list_options()
    return jsonify({"options": [o.to_dict() for o in options]})


@bp.route("/api/options/<int:option_id>", methods=["PUT"])
@admin_required
def update_option(option_id: int):
    store = get_store()
    option = store.get_option(option_id)
    if option is None:
        raise OptionNotFound()
    data = json_body()
    title = str(data.get("title", option.title)).strip()
    if not title:
        raise ValidationError("Title is required.")
    option.title = title
    option.description = str(data.get("description", option.description)).strip()
    store.save_option(option)
    logger.info("Topic %d edited by %s", option_id, current_user_id())
    return jsonify({"success": True, "option": option.to_dict()})


@bp.route("/api/options/stats")
@login_required
def all_option_stats():
    stats = get_availability().all_option_stats()
    return poll_response({"stats": {str(k): v for k, v in stats.items()}}, "dashboard")


@bp.route("/api/options/<int:option_id>/stats")
@login_required
def option_stats(option_id: int):
    if get_store().get_option(option_id) is None:
        raise OptionNotFound()
    return poll_response(get_availability().get_option_stats(option_id), "dashboard")


# ── Joining ───────────────────────────────────────────────


@bp.route("/api/groups/join", methods=["POST"])
@student_required
def join_group():
    data = json_body()
    option_id = _parse_option_id(data.get("option_id"))
    allocator = get_allocator()
    uid = current_user_id()
    try:
        group = allocator.join_group(uid, option_id)
    except AlreadyLocked as e:
        # Stale client view: hand back the real membership so it can resync.
        current = allocator.group_for_student(uid)
        body = e.to_dict()
        body["group"] = current.to_dict() if current else None
        return jsonify(body), e.status_code
    return jsonify({"success": True, "group": group.to_dict()}), 201


@bp.route("/api/groups/mine")
@login_required
def my_group():
    allocator = get_allocator()
    group = allocator.group_for_student(current_user_id())
    if group is None:
        return poll_response({"group": None, "members": []}, "dashboard")
    members = [{"id": u.id, "name": u.name, "email": u.email}
               for u in allocator.members_of(group)]
    return poll_response({"group": group.to_dict(), "members": members}, "dashboard")


@bp.route("/api/groups/<group_id>/name", methods=["PUT"])
@login_required
def rename_group(group_id: str):
    allocator = get_allocator()
    group = allocator.get_group(group_id)
    if not can_access_group(group):
        return jsonify({"error": "Not a member of this group.", "code": "Forbidden"}), 403
    data = json_body()
    group = allocator.rename_group(group_id, data.get("name", ""))
    return jsonify({"success": True, "group": group.to_dict()})


# ── Instructor views ──────────────────────────────────────


@bp.route("/api/groups")
@admin_required
def list_groups():
    groups = get_allocator().list_groups()
    return poll_response({"groups": [g.to_dict() for g in groups]}, "admin")


@bp.route("/api/groups/<group_id>")
@login_required
def group_detail(group_id: str):
    allocator = get_allocator()
    group = allocator.get_group(group_id)
    if not can_access_group(group):
        return jsonify({"error": "Not a member of this group.", "code": "Forbidden"}), 403

    payload = {
        "group": group.to_dict(),
        "members": [{"id": u.id, "name": u.name, "email": u.email}
                    for u in allocator.members_of(group)],
    }
    if current_user.role == Role.ADMIN:
        uploads = get_ledger().uploads_for_students(group.member_ids)
        payload["uploads"] = [u.to_dict() for u in uploads]
    view = "admin" if current_user.role == Role.ADMIN else "dashboard"
    return poll_response(payload, view)
