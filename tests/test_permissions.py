"""
Тесты прав доступа (tasks.permissions).
"""
import pytest

from app.core.exceptions import Forbidden, NotFound
from tasks.models import Project, TeamMemberRole
from tasks.permissions import (
    MANAGER_ROLES,
    authorize,
    authorize_project,
    authorize_task,
    can_delete,
    get_projects_for_user,
    get_tasks_for_user,
    get_teams_for_user,
)
from tasks.services import TeamService


@pytest.mark.django_db
class TestAuthorize:
    """Тесты authorize()."""

    def test_member_gets_membership_record(self, full_team, contributor):
        member = authorize(contributor, full_team)
        assert member.user_id == contributor.id
        assert member.role == TeamMemberRole.CONTRIBUTOR

    def test_accepts_team_id(self, full_team, owner):
        member = authorize(owner, full_team.id)
        assert member.role == TeamMemberRole.OWNER

    def test_missing_team_is_not_found(self, owner):
        with pytest.raises(NotFound):
            authorize(owner, 999999)

    def test_soft_deleted_team_is_not_found(self, full_team, owner):
        TeamService.delete(owner, full_team.id)
        with pytest.raises(NotFound):
            authorize(owner, full_team.id)

    def test_outsider_is_forbidden(self, full_team, outsider):
        with pytest.raises(Forbidden):
            authorize(outsider, full_team)

    def test_role_outside_required_set_is_forbidden(self, full_team, contributor, viewer):
        with pytest.raises(Forbidden):
            authorize(contributor, full_team, MANAGER_ROLES)
        with pytest.raises(Forbidden):
            authorize(viewer, full_team, [TeamMemberRole.OWNER])

    def test_admin_passes_manager_roles(self, full_team, admin_member):
        assert authorize(admin_member, full_team, MANAGER_ROLES).role == TeamMemberRole.ADMIN


@pytest.mark.django_db
class TestResourceAuthorization:
    """Доступ к проекту и задаче через команду."""

    def test_authorize_project(self, project, viewer):
        found, member = authorize_project(viewer, project.id)
        assert found == project
        assert member.role == TeamMemberRole.VIEWER

    def test_authorize_missing_project(self, owner):
        with pytest.raises(NotFound):
            authorize_project(owner, 424242)

    def test_authorize_task_outsider(self, task, outsider):
        with pytest.raises(Forbidden):
            authorize_task(outsider, task.id)

    def test_authorize_missing_task(self, owner):
        with pytest.raises(NotFound):
            authorize_task(owner, 424242)


@pytest.mark.django_db
class TestCanDelete:
    """Удаление: создатель ИЛИ owner/admin."""

    def test_creator_can_delete(self, full_team, make_task, contributor):
        task = make_task("Contributor task", created_by=contributor)
        member = authorize(contributor, full_team)
        assert can_delete(member, task) is True

    def test_admin_can_delete_foreign_task(self, full_team, task, admin_member):
        member = authorize(admin_member, full_team)
        assert can_delete(member, task) is True

    def test_contributor_cannot_delete_foreign_task(self, full_team, task, contributor):
        member = authorize(contributor, full_team)
        assert can_delete(member, task) is False


@pytest.mark.django_db
class TestListingScopes:
    """Списки фильтруются по командам пользователя."""

    def test_outsider_sees_nothing(self, project, task, outsider):
        assert list(get_teams_for_user(outsider)) == []
        assert list(get_projects_for_user(outsider)) == []
        assert list(get_tasks_for_user(outsider)) == []

    def test_member_sees_team_resources(self, project, task, viewer):
        assert list(get_projects_for_user(viewer)) == [project]
        assert list(get_tasks_for_user(viewer)) == [task]

    def test_inactive_team_hidden(self, full_team, project, owner):
        TeamService.delete(owner, full_team.id)
        assert list(get_teams_for_user(owner)) == []
        assert list(get_projects_for_user(owner)) == []
        assert Project.objects.filter(pk=project.pk).exists()
