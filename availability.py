"""Per-topic seat availability, derived by re-scanning group records."""

from __future__ import annotations

from allocator import find_open_batch
from models import BATCHES_PER_TOPIC, GROUP_CAPACITY


class AvailabilityReporter:
    """Read-only projection of the allocation grid. Never creates groups."""

    def __init__(self, store, batches: int = BATCHES_PER_TOPIC, capacity: int = GROUP_CAPACITY):
        self.store = store
        self.batches = batches
        self.capacity = capacity

    def get_option_stats(self, option_id: int) -> dict:
        slot = find_open_batch(self.store, option_id, self.batches, self.capacity)
        if slot is None:
            return {"available": False, "batch": self.batches, "remaining": 0}
        batch, group = slot
        taken = group.seats_taken if group is not None else 0
        return {"available": True, "batch": batch, "remaining": self.capacity - taken}

    def all_option_stats(self) -> dict[int, dict]:
        return {o.id: self.get_option_stats(o.id) for o in self.store.list_options()}
