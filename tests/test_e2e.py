import io

from tasktrail.models.audit import AuditLog


class TestE2E:
    def test_private_task_becomes_visible_once_public(self, client, db):
        # 1. Alice registers and logs in
        r = client.post(
            "/auth/register",
            json={"email": "a@x.com", "password": "password123", "name": "Alice"},
        )
        assert r.status_code == 201
        alice_id = r.json()["user"]["id"]

        r = client.post("/auth/login", json={"email": "a@x.com", "password": "password123"})
        assert r.status_code == 200
        alice = {"Authorization": f"Bearer {r.json()['token']}"}

        # 2. Bob registers with his own token
        r = client.post(
            "/auth/register",
            json={"email": "b@x.com", "password": "password456", "name": "Bob"},
        )
        bob = {"Authorization": f"Bearer {r.json()['token']}"}

        # 3. Alice creates a private task
        r = client.post(
            "/tasks",
            json={
                "title": "Doc",
                "description": "Write docs for API",
                "deliveryDate": "2026-02-15T12:00:00Z",
                "isPublic": False,
            },
            headers=alice,
        )
        assert r.status_code == 201
        task = r.json()
        assert task["ownerId"] == alice_id

        # 4. Bob can neither see nor list it
        assert client.get(f"/tasks/{task['id']}", headers=bob).status_code == 403
        assert client.get("/tasks", headers=bob).json()["total"] == 0

        # 5. Alice makes it public, Bob can now read it
        r = client.patch(f"/tasks/{task['id']}", json={"isPublic": True}, headers=alice)
        assert r.status_code == 200
        r = client.get(f"/tasks/{task['id']}", headers=bob)
        assert r.status_code == 200
        assert r.json()["title"] == "Doc"
        assert client.get("/tasks", headers=bob).json()["total"] == 1

    def test_complete_task_journey(self, client, db, s3, make_user, task_payload):
        alice_user, alice = make_user("Alice")

        task = client.post(
            "/tasks",
            json=task_payload(tags=["backend", "docs"], responsible="Alice", comments="first pass"),
            headers=alice,
        ).json()

        r = client.patch(f"/tasks/{task['id']}", json={"status": "IN_PROGRESS"}, headers=alice)
        assert r.json()["status"] == "IN_PROGRESS"

        r = client.post(
            f"/tasks/{task['id']}/upload",
            files={"file": ("diagram.png", io.BytesIO(b"\x89PNG fake"), "image/png")},
            headers=alice,
        )
        assert r.status_code == 200
        file_url = r.json()["url"]

        listed = client.get("/tasks", params={"tags": "docs", "status": "IN_PROGRESS"}, headers=alice).json()
        assert [t["id"] for t in listed["items"]] == [task["id"]]
        assert listed["items"][0]["fileUrl"] == file_url

        assert client.delete(f"/tasks/{task['id']}", headers=alice).status_code == 200
        assert client.get("/tasks", headers=alice).json()["total"] == 0
        assert s3.objects == {}

        actions = [
            e.action
            for e in db.query(AuditLog).filter(AuditLog.task_id == task["id"]).order_by(AuditLog.id)
        ]
        assert actions == ["CREATE_TASK", "UPDATE_TASK", "UPLOAD_FILE", "DELETE_TASK"]
        assert {e.user_id for e in db.query(AuditLog)} == {alice_user["id"]}

    def test_health_and_root(self, client):
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/").status_code == 200
