"""Tests for blueprints/chat.py and the core routes."""


def _join(client, option_id=1):
    return client.post("/api/groups/join", json={"option_id": option_id}).get_json()["group"]


class TestChat:
    def test_member_sends_and_reads(self, student_client, second_client):
        group = _join(student_client)
        _join(second_client)

        resp = student_client.post(f"/api/groups/{group['id']}/chat", json={"message": "  hi all "})
        assert resp.status_code == 201
        assert resp.get_json()["message"]["message"] == "hi all"
        second_client.post(f"/api/groups/{group['id']}/chat", json={"message": "hello"})

        resp = second_client.get(f"/api/groups/{group['id']}/chat")
        assert resp.headers["X-Poll-Interval"] == "2"
        messages = resp.get_json()["messages"]
        assert [m["message"] for m in messages] == ["hi all", "hello"]
        assert [m["user_name"] for m in messages] == ["Test Student", "Second Student"]
        assert messages[0]["timestamp"] <= messages[1]["timestamp"]

    def test_empty_message_rejected(self, student_client):
        group = _join(student_client)
        resp = student_client.post(f"/api/groups/{group['id']}/chat", json={"message": "   "})
        assert resp.status_code == 400
        assert student_client.get(f"/api/groups/{group['id']}/chat").get_json()["messages"] == []

    def test_non_member_blocked(self, student_client, second_client):
        group = _join(student_client, 1)
        _join(second_client, 2)
        assert second_client.get(f"/api/groups/{group['id']}/chat").status_code == 403
        resp = second_client.post(f"/api/groups/{group['id']}/chat", json={"message": "psst"})
        assert resp.status_code == 403

    def test_admin_can_read_and_post(self, student_client, admin_client):
        group = _join(student_client)
        resp = admin_client.post(f"/api/groups/{group['id']}/chat", json={"message": "Check in Friday"})
        assert resp.status_code == 201
        messages = student_client.get(f"/api/groups/{group['id']}/chat").get_json()["messages"]
        assert messages[0]["user_name"] == "Test Admin"

    def test_unknown_group(self, admin_client):
        assert admin_client.get("/api/groups/nope/chat").status_code == 404


class TestCore:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.get_json()["status"] == "ok"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Request-ID"]

    def test_sections(self, client):
        sections = client.get("/api/sections").get_json()["sections"]
        assert [s["id"] for s in sections] == [1, 2, 3, 4, 5, 6]
        assert sections[-1]["label"] == "Week 15–16"

    def test_client_config(self, client):
        data = client.get("/api/client-config").get_json()
        assert data["poll_intervals"] == {"dashboard": 3, "admin": 5, "chat": 2}
        assert data["group_capacity"] == 6
        assert data["batches_per_topic"] == 4

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert "error" in resp.get_json()


class TestMemoryBackend:
    def test_app_with_memory_store(self):
        from app import create_app

        app = create_app({"TESTING": True, "STORE_BACKEND": "memory", "SECRET_KEY": "x"})
        client = app.test_client()
        resp = client.post("/api/register", json={
            "name": "Mem User", "email": "mem@test.edu", "password": "Mempass123",
        })
        assert resp.status_code == 201
        resp = client.post("/api/groups/join", json={"option_id": 12})
        assert resp.status_code == 201
        assert client.get("/api/options/12/stats").get_json()["remaining"] == 5
