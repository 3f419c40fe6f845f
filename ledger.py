"""
Submission ledger — per-(student, section) uploads and instructor remarks.

Only a file name and an opaque URL token are recorded; bytes live elsewhere.
A record can exist without a file (remark added before any submission), so
"has a file" means ``file_name`` is non-empty.

Deleting a file follows DELETE_ACTIONS: if an instructor remark is attached
the record is kept with its file fields cleared (soft), otherwise the record
is removed (hard).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from werkzeug.utils import secure_filename

from errors import SectionNotFound, ValidationError
from models import PROJECT_SECTIONS, SECTION_IDS, SectionUpload

logger = logging.getLogger(__name__)

SOFT_DELETE = "soft"
HARD_DELETE = "hard"

# remark present -> action
DELETE_ACTIONS = {
    True: SOFT_DELETE,
    False: HARD_DELETE,
}


def delete_action(upload: SectionUpload) -> str:
    return DELETE_ACTIONS[upload.has_remark]


def file_url_for(student_id: str, section_id: int, file_name: str) -> str:
    return f"upload://{student_id}/{section_id}/{secure_filename(file_name) or 'file'}"


class SubmissionLedger:

    def __init__(self, store):
        self.store = store

    def _check_section(self, section_id: int) -> None:
        if section_id not in SECTION_IDS:
            raise SectionNotFound()

    def upload_file(self, student_id: str, section_id: int, file_name: str) -> SectionUpload:
        """Record a submission, keeping any remark already on the record."""
        self._check_section(section_id)
        file_name = (file_name or "").strip()
        if not file_name:
            raise ValidationError("File name is required.")

        with self.store.transaction():
            upload = self.store.get_upload(student_id, section_id)
            if upload is None:
                upload = SectionUpload(student_id=student_id, section_id=section_id)
            upload.file_name = file_name
            upload.file_url = file_url_for(student_id, section_id, file_name)
            upload.uploaded_at = datetime.now().isoformat()
            self.store.save_upload(upload)

        logger.info("Upload recorded: student=%s section=%d file=%s",
                    student_id, section_id, file_name)
        return upload

    def delete_upload(self, student_id: str, section_id: int) -> Optional[str]:
        """Retract a submission. Returns the action taken, or None if nothing existed."""
        self._check_section(section_id)
        with self.store.transaction():
            upload = self.store.get_upload(student_id, section_id)
            if upload is None:
                return None
            action = delete_action(upload)
            if action == SOFT_DELETE:
                upload.file_name = ""
                upload.file_url = ""
                upload.uploaded_at = ""
                self.store.save_upload(upload)
            else:
                self.store.delete_upload(student_id, section_id)

        logger.info("Upload deleted (%s): student=%s section=%d", action, student_id, section_id)
        return action

    def add_remark(self, student_id: str, section_id: int, remark: str) -> SectionUpload:
        self._check_section(section_id)
        remark = (remark or "").strip()
        if not remark:
            raise ValidationError("Remark cannot be empty.")

        with self.store.transaction():
            upload = self.store.get_upload(student_id, section_id)
            if upload is None:
                # comment before submission
                upload = SectionUpload(student_id=student_id, section_id=section_id)
            upload.remark = remark
            self.store.save_upload(upload)

        logger.info("Remark saved: student=%s section=%d", student_id, section_id)
        return upload

    # --- Reads ---

    def get_uploads_for_student(self, student_id: str) -> list[SectionUpload]:
        return self.store.list_uploads(student_id)

    def get_all_uploads(self) -> list[SectionUpload]:
        return self.store.list_uploads()

    def uploads_for_students(self, student_ids: Iterable[str]) -> list[SectionUpload]:
        wanted = set(student_ids)
        return [u for u in self.store.list_uploads() if u.student_id in wanted]

    def completion(self, student_id: str) -> dict:
        submitted = sum(1 for u in self.get_uploads_for_student(student_id) if u.has_file)
        total = len(PROJECT_SECTIONS)
        return {
            "submitted": submitted,
            "total": total,
            "percentage": round(submitted / total * 100),
        }
