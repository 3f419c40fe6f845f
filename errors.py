"""
Error taxonomy for EduGroup.

Core services raise these; the Flask app serializes them into JSON responses
using ``status_code`` and ``code``. Nothing is retried internally.
"""

from __future__ import annotations


class EduGroupError(Exception):
    """Base class for caller-visible failures."""

    status_code = 400
    default_message = "Request failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(EduGroupError):
    status_code = 400
    default_message = "Invalid input."


# ── Accounts ─────────────────────────────────────────────────────────


class DuplicateEmail(EduGroupError):
    status_code = 409
    default_message = "An account with this email already exists."


class InvalidCredentials(EduGroupError):
    status_code = 401
    default_message = "Invalid email or password."


class InvalidAdminEmail(EduGroupError):
    status_code = 400
    default_message = "Admin email must contain the institution marker."


class UserNotFound(EduGroupError):
    status_code = 404
    default_message = "User not found."


class NotAStudent(EduGroupError):
    status_code = 403
    default_message = "Only students can join a group."


# ── Allocation ───────────────────────────────────────────────────────


class OptionNotFound(EduGroupError):
    status_code = 404
    default_message = "Topic not found."


class AlreadyLocked(EduGroupError):
    """The student has already joined a group.

    Usually means the caller holds a stale view; re-fetch the student's
    group instead of treating this as terminal.
    """

    status_code = 409
    default_message = "You have already joined a group."


class AllBatchesFull(EduGroupError):
    status_code = 409
    default_message = "All batches for this topic are full."


class GroupNotFound(EduGroupError):
    status_code = 404
    default_message = "Group not found."


class GroupLocked(EduGroupError):
    status_code = 409
    default_message = "Cannot rename a locked group (6 members reached)."


# ── Submissions ──────────────────────────────────────────────────────


class SectionNotFound(EduGroupError):
    status_code = 404
    default_message = "Section not found."


# Not raised: upload and remark writes create a missing record instead.
# Kept so clients can rely on the full set of error codes.
class RecordNotFound(EduGroupError):
    status_code = 404
    default_message = "Record not found."
