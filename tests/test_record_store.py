"""Tests for record_store.py and db_stores.py — both backends, same behaviour."""

import pytest

from errors import DuplicateEmail
from models import ChatMessage, Group, PreferenceOption, Role, SectionUpload


class TestUsers:
    def test_add_and_get(self, store, make_user):
        user = make_user(store, "Ann", email="ann@test.edu")
        loaded = store.get_user(user.id)
        assert loaded.name == "Ann"
        assert loaded.preferences_locked is False
        assert store.get_user("missing") is None

    def test_find_by_email_is_case_insensitive(self, store, make_user):
        user = make_user(store, email="ann@test.edu")
        assert store.find_user_by_email("  ANN@test.edu ").id == user.id
        assert store.find_user_by_email("other@test.edu") is None

    def test_duplicate_email_rejected(self, store, make_user):
        make_user(store, email="ann@test.edu")
        with pytest.raises(DuplicateEmail):
            make_user(store, email="ann@test.edu")
        assert len(store.list_users()) == 1

    def test_list_by_role(self, store, make_user):
        make_user(store)
        make_user(store, role=Role.ADMIN)
        assert len(store.list_users()) == 2
        assert [u.role for u in store.list_users(Role.ADMIN)] == [Role.ADMIN]

    def test_set_preferences_locked(self, store, make_user):
        user = make_user(store)
        store.set_preferences_locked(user.id, True)
        assert store.get_user(user.id).preferences_locked is True


class TestOptions:
    def test_seeded_catalog(self, store):
        options = store.list_options()
        assert [o.id for o in options] == list(range(1, 13))
        assert options[0].title == "Research Topic 1"

    def test_save_option(self, store):
        store.save_option(PreferenceOption(5, "Robotics", "Build a robot"))
        assert store.get_option(5).title == "Robotics"
        assert len(store.list_options()) == 12


class TestGroups:
    def test_natural_key_is_unique(self, store):
        store.add_group(Group(batch_number=1, option_id=1))
        with pytest.raises(ValueError):
            store.add_group(Group(batch_number=1, option_id=1))

    def test_reads_are_copies(self, store):
        group = store.add_group(Group(batch_number=1, option_id=2))
        loaded = store.get_group(group.id)
        loaded.member_ids.append("u1")
        assert store.get_group(group.id).member_ids == []

    def test_save_and_find(self, store):
        group = store.add_group(Group(batch_number=2, option_id=3))
        group.member_ids = ["u1", "u2"]
        group.name = "Renamed"
        store.save_group(group)
        found = store.find_group(2, 3)
        assert found.member_ids == ["u1", "u2"]
        assert found.name == "Renamed"
        assert store.find_group(1, 3) is None

    def test_find_group_for_member_is_exact(self, store):
        store.add_group(Group(batch_number=1, option_id=1, member_ids=["abc123"]))
        assert store.find_group_for_member("abc123").option_id == 1
        assert store.find_group_for_member("abc") is None

    def test_list_groups_ordered(self, store):
        store.add_group(Group(batch_number=2, option_id=1))
        store.add_group(Group(batch_number=1, option_id=3))
        store.add_group(Group(batch_number=1, option_id=1))
        assert [(g.option_id, g.batch_number) for g in store.list_groups()] == [(1, 1), (1, 2), (3, 1)]
        assert len(store.list_groups(1)) == 2


class TestUploads:
    def test_composite_key(self, store):
        store.save_upload(SectionUpload("s1", 1, file_name="a.pdf"))
        store.save_upload(SectionUpload("s1", 1, file_name="b.pdf"))
        store.save_upload(SectionUpload("s1", 2, file_name="c.pdf"))
        assert store.get_upload("s1", 1).file_name == "b.pdf"
        assert len(store.list_uploads("s1")) == 2

    def test_remark_may_be_none(self, store):
        store.save_upload(SectionUpload("s1", 1, file_name="a.pdf"))
        assert store.get_upload("s1", 1).remark is None

    def test_delete(self, store):
        store.save_upload(SectionUpload("s1", 1, file_name="a.pdf"))
        assert store.delete_upload("s1", 1) is True
        assert store.delete_upload("s1", 1) is False
        assert store.list_uploads() == []


class TestMessages:
    def test_list_sorted(self, store):
        store.add_message(ChatMessage("g1", "u1", "Ann", "late", 20))
        store.add_message(ChatMessage("g1", "u1", "Ann", "early", 10))
        store.add_message(ChatMessage("g2", "u1", "Ann", "other", 5))
        assert [m.message for m in store.list_messages("g1")] == ["early", "late"]


class TestTransaction:
    def test_commits_on_success(self, store, make_user):
        user = make_user(store)
        with store.transaction():
            store.add_group(Group(batch_number=1, option_id=1, member_ids=[user.id]))
            store.set_preferences_locked(user.id, True)
        assert store.find_group(1, 1) is not None
        assert store.get_user(user.id).preferences_locked

    def test_nested_transactions(self, store):
        with store.transaction():
            with store.transaction():
                store.add_group(Group(batch_number=1, option_id=1))
            store.add_group(Group(batch_number=2, option_id=1))
        assert len(store.list_groups()) == 2


class TestSQLiteRollback:
    def test_rollback_on_error(self, tmp_path, make_user):
        from database import connect, init_schema
        from db_stores import SQLiteRecordStore

        conn = connect(str(tmp_path / "rb.db"))
        init_schema(conn)
        store = SQLiteRecordStore(conn)
        user = make_user(store)

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.add_group(Group(batch_number=1, option_id=1, member_ids=[user.id]))
                store.set_preferences_locked(user.id, True)
                raise RuntimeError("boom")

        assert store.find_group(1, 1) is None
        assert store.get_user(user.id).preferences_locked is False
        conn.close()

    def test_second_connection_sees_commit(self, tmp_path, make_user):
        from database import connect, init_schema
        from db_stores import SQLiteRecordStore

        path = str(tmp_path / "shared.db")
        a = connect(path)
        init_schema(a)
        b = connect(path)
        store_a, store_b = SQLiteRecordStore(a), SQLiteRecordStore(b)
        user = make_user(store_a)
        with store_a.transaction():
            store_a.set_preferences_locked(user.id, True)
        assert store_b.get_user(user.id).preferences_locked is True
        a.close()
        b.close()
