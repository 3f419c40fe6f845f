"""Record store interface with an in-memory implementation.

Services (allocator, ledger, chat log) take a store object explicitly. Two
backends satisfy the protocol:

    MemoryRecordStore      — dicts behind a re-entrant lock (tests, demos)
    SQLiteRecordStore      — db_stores.py, durable

Usage:
    store = MemoryRecordStore()
    with store.transaction():
        group = store.find_group(1, 3)
        ...
        store.save_group(group)

Reads return copies; mutate a record and save it back to persist the change.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional, Protocol

from errors import DuplicateEmail
from models import (
    ChatMessage,
    Group,
    PreferenceOption,
    SectionUpload,
    User,
    initial_options,
)


# ── Protocol ───────────────────────────────────────────────


class RecordStore(Protocol):
    def transaction(self): ...

    # users
    def add_user(self, user: User) -> User: ...
    def get_user(self, user_id: str) -> Optional[User]: ...
    def find_user_by_email(self, email: str) -> Optional[User]: ...
    def list_users(self, role: str | None = None) -> list[User]: ...
    def set_preferences_locked(self, user_id: str, locked: bool) -> None: ...

    # options
    def list_options(self) -> list[PreferenceOption]: ...
    def get_option(self, option_id: int) -> Optional[PreferenceOption]: ...
    def save_option(self, option: PreferenceOption) -> None: ...

    # groups
    def get_group(self, group_id: str) -> Optional[Group]: ...
    def find_group(self, batch_number: int, option_id: int) -> Optional[Group]: ...
    def find_group_for_member(self, user_id: str) -> Optional[Group]: ...
    def list_groups(self, option_id: int | None = None) -> list[Group]: ...
    def add_group(self, group: Group) -> Group: ...
    def save_group(self, group: Group) -> None: ...

    # uploads
    def get_upload(self, student_id: str, section_id: int) -> Optional[SectionUpload]: ...
    def save_upload(self, upload: SectionUpload) -> None: ...
    def delete_upload(self, student_id: str, section_id: int) -> bool: ...
    def list_uploads(self, student_id: str | None = None) -> list[SectionUpload]: ...

    # chat
    def add_message(self, message: ChatMessage) -> ChatMessage: ...
    def list_messages(self, group_id: str) -> list[ChatMessage]: ...


# ── In-Memory Implementation ──────────────────────────────


class MemoryRecordStore:
    """Process-local store. Each collection is a dict keyed by record id."""

    def __init__(self, options: list[PreferenceOption] | None = None) -> None:
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}
        self._groups: dict[str, Group] = {}
        self._options: dict[int, PreferenceOption] = {
            o.id: o for o in (options if options is not None else initial_options())
        }
        self._uploads: dict[tuple[str, int], SectionUpload] = {}
        self._messages: list[ChatMessage] = []

    @contextmanager
    def transaction(self) -> Iterator[MemoryRecordStore]:
        with self._lock:
            yield self

    # --- Users ---

    def add_user(self, user: User) -> User:
        with self._lock:
            if self.find_user_by_email(user.email) is not None:
                raise DuplicateEmail()
            self._users[user.id] = copy.deepcopy(user)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return copy.deepcopy(user) if user else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return copy.deepcopy(user)
        return None

    def list_users(self, role: str | None = None) -> list[User]:
        with self._lock:
            return [
                copy.deepcopy(u) for u in self._users.values()
                if role is None or u.role == role
            ]

    def set_preferences_locked(self, user_id: str, locked: bool) -> None:
        with self._lock:
            if user_id in self._users:
                self._users[user_id].preferences_locked = locked

    # --- Options ---

    def list_options(self) -> list[PreferenceOption]:
        with self._lock:
            return [copy.deepcopy(self._options[k]) for k in sorted(self._options)]

    def get_option(self, option_id: int) -> Optional[PreferenceOption]:
        with self._lock:
            option = self._options.get(option_id)
            return copy.deepcopy(option) if option else None

    def save_option(self, option: PreferenceOption) -> None:
        with self._lock:
            self._options[option.id] = copy.deepcopy(option)

    # --- Groups ---

    def get_group(self, group_id: str) -> Optional[Group]:
        with self._lock:
            group = self._groups.get(group_id)
            return copy.deepcopy(group) if group else None

    def find_group(self, batch_number: int, option_id: int) -> Optional[Group]:
        with self._lock:
            for group in self._groups.values():
                if group.batch_number == batch_number and group.option_id == option_id:
                    return copy.deepcopy(group)
        return None

    def find_group_for_member(self, user_id: str) -> Optional[Group]:
        with self._lock:
            for group in self._groups.values():
                if user_id in group.member_ids:
                    return copy.deepcopy(group)
        return None

    def list_groups(self, option_id: int | None = None) -> list[Group]:
        with self._lock:
            groups = [
                copy.deepcopy(g) for g in self._groups.values()
                if option_id is None or g.option_id == option_id
            ]
        return sorted(groups, key=lambda g: (g.option_id, g.batch_number))

    def add_group(self, group: Group) -> Group:
        with self._lock:
            if self.find_group(group.batch_number, group.option_id) is not None:
                raise ValueError(
                    f"group for batch {group.batch_number} option {group.option_id} already exists"
                )
            self._groups[group.id] = copy.deepcopy(group)
        return group

    def save_group(self, group: Group) -> None:
        with self._lock:
            self._groups[group.id] = copy.deepcopy(group)

    # --- Uploads ---

    def get_upload(self, student_id: str, section_id: int) -> Optional[SectionUpload]:
        with self._lock:
            upload = self._uploads.get((student_id, section_id))
            return copy.deepcopy(upload) if upload else None

    def save_upload(self, upload: SectionUpload) -> None:
        with self._lock:
            self._uploads[(upload.student_id, upload.section_id)] = copy.deepcopy(upload)

    def delete_upload(self, student_id: str, section_id: int) -> bool:
        with self._lock:
            return self._uploads.pop((student_id, section_id), None) is not None

    def list_uploads(self, student_id: str | None = None) -> list[SectionUpload]:
        with self._lock:
            return [
                copy.deepcopy(u) for u in self._uploads.values()
                if student_id is None or u.student_id == student_id
            ]

    # --- Chat ---

    def add_message(self, message: ChatMessage) -> ChatMessage:
        with self._lock:
            self._messages.append(copy.deepcopy(message))
        return message

    def list_messages(self, group_id: str) -> list[ChatMessage]:
        with self._lock:
            msgs = [copy.deepcopy(m) for m in self._messages if m.group_id == group_id]
        # sorted() is stable, so equal timestamps keep insertion order
        return sorted(msgs, key=lambda m: m.timestamp)
