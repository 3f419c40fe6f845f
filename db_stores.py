"""
SQLite-backed record store for EduGroup.

Implements the RecordStore protocol from record_store.py on top of a sqlite3
connection (see database.py). Writes outside a transaction commit immediately;
writes inside ``transaction()`` commit together when the outermost block exits.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from errors import DuplicateEmail
from models import ChatMessage, Group, PreferenceOption, SectionUpload, User

logger = logging.getLogger(__name__)


class SQLiteRecordStore:
    """DB-backed store over a single connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.db = conn
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[SQLiteRecordStore]:
        """Serialize a read-modify-write against other writers.

        BEGIN IMMEDIATE takes the database write lock up front, so a scan
        performed inside the block cannot be invalidated by another connection
        before the block commits.
        """
        if self._depth == 0:
            if self.db.in_transaction:
                self.db.commit()
            self.db.execute("BEGIN IMMEDIATE")
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.db.rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self.db.commit()

    def _commit(self) -> None:
        if self._depth == 0:
            self.db.commit()

    def _rollback(self) -> None:
        # Inside transaction() the outermost block rolls back
        if self._depth == 0:
            self.db.rollback()

    # --- Users ---

    def add_user(self, user: User) -> User:
        try:
            self.db.execute(
                "INSERT INTO users (id, name, email, password_hash, role, preferences_locked, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (user.id, user.name, user.email, user.password_hash, user.role,
                 int(user.preferences_locked), user.created_at),
            )
        except sqlite3.IntegrityError as e:
            self._rollback()
            if "users.email" in str(e):
                raise DuplicateEmail() from e
            raise
        self._commit()
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        row = self.db.execute("SELECT * FROM users WHERE id=?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        row = self.db.execute(
            "SELECT * FROM users WHERE email=?", (email.strip().lower(),)
        ).fetchone()
        return self._row_to_user(row) if row else None

    def list_users(self, role: str | None = None) -> list[User]:
        if role is None:
            rows = self.db.execute("SELECT * FROM users ORDER BY created_at").fetchall()
        else:
            rows = self.db.execute(
                "SELECT * FROM users WHERE role=? ORDER BY created_at", (role,)
            ).fetchall()
        return [self._row_to_user(r) for r in rows]

    def set_preferences_locked(self, user_id: str, locked: bool) -> None:
        self.db.execute(
            "UPDATE users SET preferences_locked=? WHERE id=?", (int(locked), user_id)
        )
        self._commit()

    def _row_to_user(self, r) -> User:
        return User(
            id=r["id"],
            name=r["name"],
            email=r["email"],
            password_hash=r["password_hash"],
            role=r["role"],
            preferences_locked=bool(r["preferences_locked"]),
            created_at=r["created_at"],
        )

    # --- Options ---

    def list_options(self) -> list[PreferenceOption]:
        rows = self.db.execute("SELECT * FROM options ORDER BY id").fetchall()
        return [PreferenceOption(r["id"], r["title"], r["description"]) for r in rows]

    def get_option(self, option_id: int) -> Optional[PreferenceOption]:
        r = self.db.execute("SELECT * FROM options WHERE id=?", (option_id,)).fetchone()
        return PreferenceOption(r["id"], r["title"], r["description"]) if r else None

    def save_option(self, option: PreferenceOption) -> None:
        self.db.execute(
            "INSERT INTO options (id, title, description) VALUES (?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET title=excluded.title, description=excluded.description",
            (option.id, option.title, option.description),
        )
        self._commit()

    # --- Groups ---

    def get_group(self, group_id: str) -> Optional[Group]:
        r = self.db.execute("SELECT * FROM project_groups WHERE id=?", (group_id,)).fetchone()
        return self._row_to_group(r) if r else None

    def find_group(self, batch_number: int, option_id: int) -> Optional[Group]:
        r = self.db.execute(
            "SELECT * FROM project_groups WHERE batch_number=? AND option_id=?",
            (batch_number, option_id),
        ).fetchone()
        return self._row_to_group(r) if r else None

    def find_group_for_member(self, user_id: str) -> Optional[Group]:
        # member_ids is a JSON array; json_each keeps the match exact
        r = self.db.execute(
            "SELECT g.* FROM project_groups g, json_each(g.member_ids) m "
            "WHERE m.value = ? LIMIT 1",
            (user_id,),
        ).fetchone()
        return self._row_to_group(r) if r else None

    def list_groups(self, option_id: int | None = None) -> list[Group]:
        if option_id is None:
            rows = self.db.execute(
                "SELECT * FROM project_groups ORDER BY option_id, batch_number"
            ).fetchall()
        else:
            rows = self.db.execute(
                "SELECT * FROM project_groups WHERE option_id=? ORDER BY batch_number",
                (option_id,),
            ).fetchall()
        return [self._row_to_group(r) for r in rows]

    def add_group(self, group: Group) -> Group:
        try:
            self.db.execute(
                "INSERT INTO project_groups (id, batch_number, option_id, name, member_ids, is_locked) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (group.id, group.batch_number, group.option_id, group.name,
                 json.dumps(group.member_ids), int(group.is_locked)),
            )
        except sqlite3.IntegrityError as e:
            self._rollback()
            raise ValueError(
                f"group for batch {group.batch_number} option {group.option_id} already exists"
            ) from e
        self._commit()
        return group

    def save_group(self, group: Group) -> None:
        self.db.execute(
            "UPDATE project_groups SET name=?, member_ids=?, is_locked=? WHERE id=?",
            (group.name, json.dumps(group.member_ids), int(group.is_locked), group.id),
        )
        self._commit()

    def _row_to_group(self, r) -> Group:
        return Group(
            id=r["id"],
            batch_number=r["batch_number"],
            option_id=r["option_id"],
            name=r["name"],
            member_ids=json.loads(r["member_ids"] or "[]"),
            is_locked=bool(r["is_locked"]),
        )

    # --- Uploads ---

    def get_upload(self, student_id: str, section_id: int) -> Optional[SectionUpload]:
        r = self.db.execute(
            "SELECT * FROM uploads WHERE student_id=? AND section_id=?",
            (student_id, section_id),
        ).fetchone()
        return self._row_to_upload(r) if r else None

    def save_upload(self, upload: SectionUpload) -> None:
        self.db.execute(
            "INSERT INTO uploads (student_id, section_id, file_name, file_url, uploaded_at, remark) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(student_id, section_id) DO UPDATE SET "
            "file_name=excluded.file_name, file_url=excluded.file_url, "
            "uploaded_at=excluded.uploaded_at, remark=excluded.remark",
            (upload.student_id, upload.section_id, upload.file_name, upload.file_url,
             upload.uploaded_at, upload.remark),
        )
        self._commit()

    def delete_upload(self, student_id: str, section_id: int) -> bool:
        cur = self.db.execute(
            "DELETE FROM uploads WHERE student_id=? AND section_id=?",
            (student_id, section_id),
        )
        self._commit()
        return cur.rowcount > 0

    def list_uploads(self, student_id: str | None = None) -> list[SectionUpload]:
        if student_id is None:
            rows = self.db.execute("SELECT * FROM uploads").fetchall()
        else:
            rows = self.db.execute(
                "SELECT * FROM uploads WHERE student_id=?", (student_id,)
            ).fetchall()
        return [self._row_to_upload(r) for r in rows]

    def _row_to_upload(self, r) -> SectionUpload:
        return SectionUpload(
            student_id=r["student_id"],
            section_id=r["section_id"],
            file_name=r["file_name"],
            file_url=r["file_url"],
            uploaded_at=r["uploaded_at"],
            remark=r["remark"],
        )

    # --- Chat ---

    def add_message(self, message: ChatMessage) -> ChatMessage:
        self.db.execute(
            "INSERT INTO chat_messages (id, group_id, user_id, user_name, message, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (message.id, message.group_id, message.user_id, message.user_name,
             message.message, message.timestamp),
        )
        self._commit()
        return message

    def list_messages(self, group_id: str) -> list[ChatMessage]:
        rows = self.db.execute(
            "SELECT * FROM chat_messages WHERE group_id=? ORDER BY timestamp, rowid",
            (group_id,),
        ).fetchall()
        return [
            ChatMessage(
                id=r["id"],
                group_id=r["group_id"],
                user_id=r["user_id"],
                user_name=r["user_name"],
                message=r["message"],
                timestamp=r["timestamp"],
            )
            for r in rows
        ]
