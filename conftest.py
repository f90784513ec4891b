"""
Pytest configuration and fixtures for TaskWise.

This file is automatically loaded by pytest and provides common fixtures
for all test modules.

Note: pytest-django handles Django setup automatically via DJANGO_SETTINGS_MODULE
configured in pyproject.toml.
"""
import pytest

from app.core.exceptions import AIQuotaExceededError


class FakeLLM:
    """Stand-in for LLMProvider: returns canned replies or raises an error."""

    def __init__(self, reply="{}", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate_json(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_llm():
    """Factory: fake_llm(reply=..., error=...)."""
    return FakeLLM


@pytest.fixture
def quota_llm():
    """Model client that always fails with quota exhaustion."""
    return FakeLLM(error=AIQuotaExceededError())


@pytest.fixture
def make_user(db):
    """Factory for users with email login."""
    from accounts.models import User

    def _make(email, name=None, password="testpassword123", **extra):
        return User.objects.create_user(
            email=email,
            password=password,
            name=name or email.split("@")[0].title(),
            **extra,
        )
    return _make


@pytest.fixture
def user(make_user):
    """Create a test user."""
    return make_user("test@example.com", name="Test User")


@pytest.fixture
def owner(make_user):
    """Владелец команды."""
    return make_user("owner@example.com", name="Olga Owner")


@pytest.fixture
def admin_member(make_user):
    """Администратор команды."""
    return make_user("admin@example.com", name="Anna Admin")


@pytest.fixture
def contributor(make_user):
    """Участник команды (contributor)."""
    return make_user("contributor@example.com", name="Carl Contributor")


@pytest.fixture
def viewer(make_user):
    """Наблюдатель команды."""
    return make_user("viewer@example.com", name="Vera Viewer")


@pytest.fixture
def outsider(make_user):
    """Пользователь не из команды."""
    return make_user("outsider@example.com", name="Oscar Outsider")


@pytest.fixture
def team(db, owner):
    """Команда, созданная владельцем (owner добавляется автоматически)."""
    from tasks.services import TeamService

    return TeamService.create(owner, {"name": "Core Team", "description": "Platform team"})


@pytest.fixture
def full_team(team, admin_member, contributor, viewer):
    """Команда с владельцем, админом, участником и наблюдателем."""
    from tasks.models import TeamMember, TeamMemberRole

    TeamMember.objects.create(team=team, user=admin_member, role=TeamMemberRole.ADMIN)
    TeamMember.objects.create(team=team, user=contributor, role=TeamMemberRole.CONTRIBUTOR)
    TeamMember.objects.create(team=team, user=viewer, role=TeamMemberRole.VIEWER)
    return team


@pytest.fixture
def project(db, full_team, owner):
    """Проект команды."""
    from tasks.models import Project

    return Project.objects.create(name="Backend API", team=full_team, created_by=owner)


@pytest.fixture
def make_task(db, project, owner):
    """Factory for tasks in the default project."""
    from tasks.models import Task

    def _make(title="Test Task", created_by=None, **fields):
        fields.setdefault("project", project)
        return Task.objects.create(title=title, created_by=created_by or owner, **fields)
    return _make


@pytest.fixture
def task(make_task):
    """Create a test task."""
    return make_task("Implement login endpoint", description="JWT based login")


@pytest.fixture
def api_client(client):
    """Factory: Django test client with a bearer token for the given user."""
    from accounts.tokens import issue_token

    def _for(user):
        client.defaults["HTTP_AUTHORIZATION"] = f"Bearer {issue_token(user)}"
        return client
    return _for
