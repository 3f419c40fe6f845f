"""
Record types and fixed catalogs for EduGroup.

Users, topics, groups, section uploads and chat messages are plain dataclasses;
stores copy them in and out so a caller never holds a live reference into
persisted state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional

TOPIC_COUNT = 12
BATCHES_PER_TOPIC = 4
GROUP_CAPACITY = 6


class Role:
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"

    ALL = (STUDENT, ADMIN)


def new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class User:
    name: str
    email: str
    password_hash: str
    role: str = Role.STUDENT
    preferences_locked: bool = False
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("password_hash")
        return data


@dataclass
class PreferenceOption:
    id: int  # 1-12
    title: str
    description: str

    def to_dict(self) -> dict:
        return asdict(self)


def initial_options() -> list[PreferenceOption]:
    return [
        PreferenceOption(
            id=i,
            title=f"Research Topic {i}",
            description=f"Focus area covering specific aspects of topic {i}.",
        )
        for i in range(1, TOPIC_COUNT + 1)
    ]


@dataclass
class Group:
    batch_number: int  # 1-4
    option_id: int  # 1-12
    name: str = ""
    member_ids: list[str] = field(default_factory=list)
    is_locked: bool = False
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if not self.name:
            self.name = default_group_name(self.option_id, self.batch_number)

    @property
    def seats_taken(self) -> int:
        return len(self.member_ids)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["seats_taken"] = self.seats_taken
        return data


def default_group_name(option_id: int, batch_number: int) -> str:
    return f"Group {option_id}-B{batch_number}"


@dataclass(frozen=True)
class Section:
    id: int
    label: str


PROJECT_SECTIONS: tuple[Section, ...] = (
    Section(1, "Week 1–3"),
    Section(2, "Week 4–5"),
    Section(3, "Week 6–8"),
    Section(4, "Week 9–11"),
    Section(5, "Week 12–14"),
    Section(6, "Week 15–16"),
)

SECTION_IDS = frozenset(s.id for s in PROJECT_SECTIONS)


@dataclass
class SectionUpload:
    student_id: str
    section_id: int
    file_name: str = ""
    file_url: str = ""
    uploaded_at: str = ""
    remark: Optional[str] = None

    @property
    def has_file(self) -> bool:
        return bool(self.file_name)

    @property
    def has_remark(self) -> bool:
        return bool(self.remark and self.remark.strip())

    def to_dict(self) -> dict:
        data = asdict(self)
        data["has_file"] = self.has_file
        return data


@dataclass
class ChatMessage:
    group_id: str
    user_id: str
    user_name: str
    message: str
    timestamp: int  # ms since epoch
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return asdict(self)
