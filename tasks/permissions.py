"""
Система прав доступа: членство в команде и роль определяют доступ к проектам и задачам.
"""
from django.db.models import Q

from app.core.exceptions import BadRequest, Forbidden, NotFound
from .models import Project, Task, Team, TeamMember, TeamMemberRole

MANAGER_ROLES = (TeamMemberRole.OWNER, TeamMemberRole.ADMIN)


def parse_pk(value, field='id') -> int:
    """Id из тела запроса или query string. Не число → BadRequest."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise BadRequest(f'Invalid {field}')


def authorize(user, team, required_roles=None) -> TeamMember:
    """
    Проверить, что пользователь состоит в команде (и, если задано, имеет одну из ролей).

    team: экземпляр Team или его id. Возвращает запись участника.
    """
    team_id = team.pk if isinstance(team, Team) else parse_pk(team, 'team')
    if not Team.objects.filter(pk=team_id, is_active=True).exists():
        raise NotFound('Team not found')

    member = TeamMember.objects.filter(team_id=team_id, user_id=user.pk).first()
    if member is None:
        raise Forbidden('You are not a member of this team')

    if required_roles and member.role not in required_roles:
        raise Forbidden('You do not have permission to perform this action')
    return member


def authorize_project(user, project_id, required_roles=None):
    """Проект + запись участника его команды."""
    project = Project.objects.select_related('team').filter(pk=parse_pk(project_id, 'project')).first()
    if project is None:
        raise NotFound('Project not found')
    member = authorize(user, project.team_id, required_roles)
    return project, member


def authorize_task(user, task_id, required_roles=None):
    """Задача + запись участника команды её проекта."""
    task = Task.objects.select_related('project', 'project__team').filter(pk=parse_pk(task_id, 'task')).first()
    if task is None:
        raise NotFound('Task not found')
    member = authorize(user, task.project.team_id, required_roles)
    return task, member


def can_delete(member: TeamMember, resource) -> bool:
    """Удалять может создатель ресурса или owner/admin команды."""
    return resource.created_by_id == member.user_id or member.role in MANAGER_ROLES


def get_teams_for_user(user):
    """Активные команды, в которых состоит пользователь."""
    return Team.objects.filter(members__user=user, is_active=True).distinct()


def get_projects_for_user(user):
    """Проекты всех активных команд пользователя."""
    return Project.objects.filter(
        team__members__user=user,
        team__is_active=True,
    ).distinct()


def get_tasks_for_user(user):
    """Задачи в проектах команд пользователя."""
    return Task.objects.filter(
        Q(project__team__members__user=user) & Q(project__team__is_active=True)
    ).distinct()
