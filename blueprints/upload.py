"""Section submission and instructor remark routes.

Only the submitted file's name is recorded; the bytes are not stored here.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from helpers import (
    admin_required,
    current_user_id,
    get_ledger,
    get_store,
    json_body,
    poll_response,
    student_required,
)
from errors import UserNotFound
from models import PROJECT_SECTIONS

logger = logging.getLogger(__name__)

bp = Blueprint("upload", __name__)


def _submitted_file_name() -> str:
    """File name from a multipart upload, or a ``file_name`` body field."""
    file = request.files.get("file")
    if file is not None and file.filename:
        return file.filename
    return str(json_body().get("file_name", ""))


@bp.route("/api/uploads")
@student_required
def my_uploads():
    ledger = get_ledger()
    uid = current_user_id()
    uploads = ledger.get_uploads_for_student(uid)
    return poll_response({
        "sections": [{"id": s.id, "label": s.label} for s in PROJECT_SECTIONS],
        "uploads": [u.to_dict() for u in uploads],
        "completion": ledger.completion(uid),
    }, "dashboard")


@bp.route("/api/uploads/<int:section_id>", methods=["POST"])
@student_required
def upload_file(section_id: int):
    upload = get_ledger().upload_file(current_user_id(), section_id, _submitted_file_name())
    return jsonify({"success": True, "upload": upload.to_dict()}), 201


@bp.route("/api/uploads/<int:section_id>", methods=["DELETE"])
@student_required
def delete_upload(section_id: int):
    action = get_ledger().delete_upload(current_user_id(), section_id)
    return jsonify({"success": True, "action": action})


# ── Instructor ────────────────────────────────────────────


@bp.route("/api/uploads/all")
@admin_required
def all_uploads():
    uploads = get_ledger().get_all_uploads()
    return poll_response({"uploads": [u.to_dict() for u in uploads]}, "admin")


@bp.route("/api/uploads/<student_id>/<int:section_id>/remark", methods=["PUT"])
@admin_required
def add_remark(student_id: str, section_id: int):
    if get_store().get_user(student_id) is None:
        raise UserNotFound()
    remark = str(json_body().get("remark", ""))
    upload = get_ledger().add_remark(student_id, section_id, remark)
    return jsonify({"success": True, "upload": upload.to_dict()})
