"""
Group allocator — places a student into a (batch, topic) cell.

Each topic has BATCHES_PER_TOPIC batches of GROUP_CAPACITY seats. A join always
lands in the lowest-numbered batch with a free seat; batches are never
balanced. Joining is one-shot: once a student is placed, their
``preferences_locked`` flag is set and further joins raise AlreadyLocked.
"""

from __future__ import annotations

import logging
from typing import Optional

from errors import (
    AllBatchesFull,
    AlreadyLocked,
    GroupLocked,
    GroupNotFound,
    NotAStudent,
    OptionNotFound,
    UserNotFound,
    ValidationError,
)
from models import BATCHES_PER_TOPIC, GROUP_CAPACITY, Group, Role, User

logger = logging.getLogger(__name__)


def find_open_batch(store, option_id: int, batches: int = BATCHES_PER_TOPIC,
                    capacity: int = GROUP_CAPACITY) -> Optional[tuple[int, Optional[Group]]]:
    """Return (batch_number, existing group or None) for the first batch with room.

    A missing group counts as an empty batch. Returns None when every batch
    is full. Shared by the allocator and the availability reporter so both
    see the same answer.
    """
    for batch in range(1, batches + 1):
        group = store.find_group(batch, option_id)
        if group is None or group.seats_taken < capacity:
            return batch, group
    return None


class Allocator:
    """Assigns students to groups and manages group names."""

    def __init__(self, store, batches: int = BATCHES_PER_TOPIC, capacity: int = GROUP_CAPACITY):
        self.store = store
        self.batches = batches
        self.capacity = capacity

    def join_group(self, student_id: str, option_id: int) -> Group:
        """Place the student in the first open batch for ``option_id``.

        The scan and both writes (group membership, student lock) happen in
        one store transaction.
        """
        with self.store.transaction():
            student = self.store.get_user(student_id)
            if student is None:
                raise UserNotFound()
            if student.role != Role.STUDENT:
                raise NotAStudent()
            if student.preferences_locked:
                raise AlreadyLocked()

            existing = self.store.find_group_for_member(student_id)
            if existing is not None:
                logger.warning(
                    "Student %s is a member of group %s but was not locked",
                    student_id, existing.id,
                )
                raise AlreadyLocked()

            if self.store.get_option(option_id) is None:
                raise OptionNotFound()

            slot = find_open_batch(self.store, option_id, self.batches, self.capacity)
            if slot is None:
                logger.info("Join rejected: topic %s full (student=%s)", option_id, student_id)
                raise AllBatchesFull()

            batch, group = slot
            if group is None:
                group = self.store.add_group(Group(batch_number=batch, option_id=option_id))

            group.member_ids.append(student_id)
            group.is_locked = group.seats_taken >= self.capacity
            self.store.save_group(group)
            self.store.set_preferences_locked(student_id, True)

        logger.info(
            "Student %s joined %s (topic=%d batch=%d seats=%d/%d)",
            student_id, group.name, option_id, batch, group.seats_taken, self.capacity,
        )
        if group.is_locked:
            logger.info("Group %s locked", group.id)
        return group

    def rename_group(self, group_id: str, name: str) -> Group:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")

        with self.store.transaction():
            group = self.store.get_group(group_id)
            if group is None:
                raise GroupNotFound()
            if group.is_locked:
                raise GroupLocked()
            group.name = name
            self.store.save_group(group)
        return group

    # --- Reads ---

    def group_for_student(self, student_id: str) -> Optional[Group]:
        return self.store.find_group_for_member(student_id)

    def get_group(self, group_id: str) -> Group:
        group = self.store.get_group(group_id)
        if group is None:
            raise GroupNotFound()
        return group

    def list_groups(self, option_id: int | None = None) -> list[Group]:
        return self.store.list_groups(option_id)

    def members_of(self, group: Group) -> list[User]:
        members = []
        for uid in group.member_ids:
            user = self.store.get_user(uid)
            if user is not None:
                members.append(user)
        return members
