"""
Seed Demo Data — standalone script.

Creates one instructor and a set of demo students, joins most of the students
to topics through the allocator (so batch and lock rules apply), and adds a few
submissions, a remark and chat messages.

Usage:
    python seed_demo_data.py           # Seed into the configured database
"""

from __future__ import annotations

from allocator import Allocator
from auth import register_user
from chat import ChatLog
from errors import DuplicateEmail
from ledger import SubmissionLedger
from models import Role

DEMO_PASSWORD = "DemoPass123"

DEMO_ADMIN = {"name": "Dr. Sarah Patel", "email": "sarah.patel@seacet.edu"}

DEMO_STUDENTS = [
    ("Alice Chen", "alice@demo.edu", 3),
    ("Bob Tanaka", "bob@demo.edu", 3),
    ("Clara Schmidt", "clara@demo.edu", 3),
    ("David Kim", "david@demo.edu", 3),
    ("Eva Rossi", "eva@demo.edu", 3),
    ("Farid Haddad", "farid@demo.edu", 3),
    ("Grace Okafor", "grace@demo.edu", 3),
    ("Hugo Martin", "hugo@demo.edu", 7),
    ("Isla Brown", "isla@demo.edu", 7),
    ("Jonas Berg", "jonas@demo.edu", None),
]


def seed(store) -> dict:
    """Seed demo data into ``store``. Returns a summary dict.

    Re-running skips users that already exist.
    """
    allocator = Allocator(store)
    ledger = SubmissionLedger(store)
    chat = ChatLog(store)

    try:
        admin = register_user(store, DEMO_ADMIN["name"], DEMO_ADMIN["email"],
                              DEMO_PASSWORD, role=Role.ADMIN)
    except DuplicateEmail:
        admin = store.find_user_by_email(DEMO_ADMIN["email"])

    created, joined = 0, 0
    for name, email, option_id in DEMO_STUDENTS:
        try:
            student = register_user(store, name, email, DEMO_PASSWORD)
        except DuplicateEmail:
            continue
        created += 1
        if option_id is None:
            continue
        group = allocator.join_group(student.id, option_id)
        joined += 1
        if joined <= 3:
            ledger.upload_file(student.id, 1, f"{name.split()[0].lower()}_week1-3.pdf")
            chat.send_message(group.id, student.id, student.name, f"Hi team, {name.split()[0]} here.")

    if created:
        first = store.find_user_by_email(DEMO_STUDENTS[0][1])
        ledger.add_remark(first.id, 1, "Good start. Expand the literature review.")

    return {
        "admin": admin.email if admin else None,
        "students_created": created,
        "students_joined": joined,
        "groups": len(store.list_groups()),
    }


if __name__ == "__main__":
    from app import create_app
    from helpers import get_store

    app = create_app()
    with app.app_context():
        if app.config.get("STORE_BACKEND", "sqlite") == "sqlite":
            from database import init_db
            init_db()
        result = seed(get_store())
        print(f"[Seed] Done: {result}")
