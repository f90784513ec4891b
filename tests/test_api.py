"""
HTTP-level tests: auth, error mapping, tasks, AI and notifications endpoints.
"""
import json

import pytest

from tasks.models import AISuggestion, Notification, NotificationType, Task


def _json(response):
    return json.loads(response.content)


@pytest.mark.django_db
class TestAuthApi:

    def test_register_login_me(self, client):
        response = client.post(
            "/api/auth/register/",
            {"name": "Nina", "email": "nina@example.com", "password": "secret1"},
            content_type="application/json",
        )
        assert response.status_code == 201
        body = _json(response)
        assert body["success"] is True
        assert body["data"]["user"]["email"] == "nina@example.com"
        assert "password" not in body["data"]["user"]

        response = client.post(
            "/api/auth/login/",
            {"email": "nina@example.com", "password": "secret1"},
            content_type="application/json",
        )
        token = _json(response)["data"]["token"]

        response = client.get("/api/auth/me/", HTTP_AUTHORIZATION=f"Bearer {token}")
        assert response.status_code == 200
        assert _json(response)["data"]["user"]["name"] == "Nina"

    def test_bad_credentials(self, client, user):
        response = client.post(
            "/api/auth/login/",
            {"email": user.email, "password": "wrong"},
            content_type="application/json",
        )
        assert response.status_code == 401
        assert _json(response)["error"] == "Invalid email or password"

    def test_invalid_json_body(self, client):
        response = client.post("/api/auth/register/", "{oops", content_type="application/json")
        assert response.status_code == 400
        assert _json(response)["success"] is False


@pytest.mark.django_db
class TestErrorMapping:

    def test_missing_token(self, client):
        response = client.get("/api/tasks/")
        assert response.status_code == 401
        assert _json(response) == {
            "success": False,
            "data": None,
            "message": None,
            "error": "Not authorized, no token",
        }

    def test_garbage_token(self, client):
        response = client.get("/api/tasks/", HTTP_AUTHORIZATION="Bearer nope")
        assert response.status_code == 401

    def test_forbidden_and_not_found(self, api_client, task, outsider):
        client = api_client(outsider)
        assert client.get(f"/api/tasks/{task.id}/").status_code == 403
        assert client.get("/api/tasks/999999/").status_code == 404

    def test_wrong_method(self, api_client, owner):
        assert api_client(owner).delete("/api/tasks/").status_code == 405


@pytest.mark.django_db
class TestTasksApi:

    def test_create_and_fetch(self, api_client, project, owner, contributor):
        client = api_client(owner)
        response = client.post(
            "/api/tasks/",
            {"project": project.id, "title": "Ship v1", "assigned_to": contributor.id, "priority": "high"},
            content_type="application/json",
        )
        assert response.status_code == 201
        created = _json(response)["data"]["task"]
        assert created["assigned_to"]["id"] == contributor.id
        assert created["is_overdue"] is False

        detail = _json(client.get(f"/api/tasks/{created['id']}/"))["data"]["task"]
        assert detail["comments"] == []
        assert detail["ai_suggestions"] == []
        assert detail["subtasks"] == []

    def test_list_filters_and_pagination(self, api_client, make_task, owner):
        for i in range(3):
            make_task(f"Task {i}", priority="low")
        make_task("Important", priority="urgent")
        body = _json(api_client(owner).get("/api/tasks/", {"priority": "low", "limit": 2}))
        assert len(body["data"]["tasks"]) == 2
        assert body["data"]["pagination"]["total"] == 3

    def test_delete_reports_count(self, api_client, make_task, owner):
        parent = make_task("Parent")
        make_task("Child", parent_task=parent)
        response = api_client(owner).delete(f"/api/tasks/{parent.id}/")
        assert _json(response)["data"] == {"deleted_tasks": 2}
        assert Task.objects.count() == 0

    def test_dependency_cycle_is_bad_request(self, api_client, make_task, owner):
        a, b = make_task("Task A"), make_task("Task B")
        client = api_client(owner)
        url = f"/api/tasks/{a.id}/dependencies/"
        assert client.post(url, {"dependencyId": b.id}, content_type="application/json").status_code == 200
        response = client.post(
            f"/api/tasks/{b.id}/dependencies/", {"dependencyId": a.id}, content_type="application/json"
        )
        assert response.status_code == 400
        assert client.delete(f"/api/tasks/{a.id}/dependencies/{b.id}/").status_code == 200


@pytest.mark.django_db
class TestAIApi:

    def test_suggest_priority(self, api_client, task, owner, fake_llm, monkeypatch):
        llm = fake_llm(reply='```json\n{"suggestedPriority": "high", "confidence": 0.7, "reasoning": "Login blocks users",}\n```')
        monkeypatch.setattr("tasks.ai_assistant.LLMProvider", lambda config: llm)

        response = api_client(owner).post(
            "/api/ai/suggest-priority/", {"taskId": task.id}, content_type="application/json"
        )
        assert response.status_code == 200
        assert _json(response)["data"]["suggested_priority"] == "high"

        history = _json(api_client(owner).get(f"/api/ai/suggestions/{task.id}/"))["data"]
        assert history["task_id"] == task.id
        assert len(history["suggestions"]) == 1

    def test_quota_falls_back(self, api_client, task, owner, quota_llm, monkeypatch):
        monkeypatch.setattr("tasks.ai_assistant.LLMProvider", lambda config: quota_llm)
        response = api_client(owner).post(
            "/api/ai/suggest-deadline/", {"taskId": task.id}, content_type="application/json"
        )
        assert response.status_code == 200
        assert _json(response)["data"]["suggested_days"] == 3
        assert AISuggestion.objects.count() == 0

    def test_malformed_reply_is_502(self, api_client, task, owner, fake_llm, monkeypatch):
        monkeypatch.setattr("tasks.ai_assistant.LLMProvider", lambda config: fake_llm(reply="not json"))
        response = api_client(owner).post(
            "/api/ai/suggest-assignee/", {"taskId": task.id}, content_type="application/json"
        )
        assert response.status_code == 502

    def test_task_id_required(self, api_client, owner):
        response = api_client(owner).post("/api/ai/breakdown-task/", {}, content_type="application/json")
        assert response.status_code == 400


@pytest.mark.django_db
class TestNotificationsApi:

    def test_list_and_mark_read(self, api_client, task, owner, contributor):
        api_client(owner).patch(
            f"/api/tasks/{task.id}/", {"assigned_to": contributor.id}, content_type="application/json"
        )
        client = api_client(contributor)

        body = _json(client.get("/api/notifications/", {"unread": "true"}))["data"]
        assert body["pagination"]["unread_count"] == 1
        notification = body["notifications"][0]
        assert notification["type"] == NotificationType.TASK_ASSIGNED

        response = client.post(f"/api/notifications/{notification['id']}/read/")
        assert _json(response)["data"]["notification"]["is_read"] is True
        assert Notification.objects.get(pk=notification["id"]).read_at is not None

    def test_cannot_read_foreign_notification(self, api_client, task, owner, contributor, viewer):
        api_client(owner).patch(
            f"/api/tasks/{task.id}/", {"assigned_to": contributor.id}, content_type="application/json"
        )
        notification = Notification.objects.get(user=contributor)
        assert api_client(viewer).post(f"/api/notifications/{notification.id}/read/").status_code == 404

    def test_mark_all_read(self, api_client, make_task, owner, contributor):
        for title in ("One", "Two"):
            task = make_task(title)
            api_client(owner).patch(
                f"/api/tasks/{task.id}/", {"assigned_to": contributor.id}, content_type="application/json"
            )
        response = api_client(contributor).post("/api/notifications/read-all/")
        assert _json(response)["data"] == {"updated": 2}
        assert not Notification.objects.filter(user=contributor, is_read=False).exists()


@pytest.mark.django_db
class TestMalformedInput:

    def test_non_numeric_task_id_for_ai(self, api_client, owner):
        response = api_client(owner).post(
            "/api/ai/suggest-priority/", {"taskId": "abc"}, content_type="application/json"
        )
        assert response.status_code == 400
        assert _json(response)["error"] == "Invalid task"

    def test_non_numeric_project_on_create(self, api_client, owner):
        response = api_client(owner).post(
            "/api/tasks/", {"project": "abc", "title": "Hello"}, content_type="application/json"
        )
        assert response.status_code == 400

    def test_non_numeric_parent_task(self, api_client, project, owner):
        response = api_client(owner).post(
            "/api/tasks/",
            {"project": project.id, "title": "Hello", "parent_task": "top"},
            content_type="application/json",
        )
        assert response.status_code == 400
        assert Task.objects.count() == 0

    def test_impossible_deadline(self, api_client, task, owner):
        response = api_client(owner).patch(
            f"/api/tasks/{task.id}/", {"deadline": "2024-02-30T10:00:00"}, content_type="application/json"
        )
        assert response.status_code == 400
        assert _json(response)["error"] == "Invalid date for deadline"

    @pytest.mark.parametrize("params", [{"project": "abc"}, {"assigned_to": "someone"}])
    def test_non_numeric_list_filters(self, api_client, task, owner, params):
        assert api_client(owner).get("/api/tasks/", params).status_code == 400

    def test_non_numeric_team_for_projects(self, api_client, owner):
        client = api_client(owner)
        assert client.get("/api/projects/", {"team": "core"}).status_code == 400
        response = client.post("/api/projects/", {"team": "core", "name": "Payments"}, content_type="application/json")
        assert response.status_code == 400
