from datetime import datetime, time, timezone as dt_timezone

from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Count, F, Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from loguru import logger

from app.core.exceptions import BadRequest, Forbidden, NotFound
from accounts.models import User
from .models import (
    Notification,
    Priority,
    Project,
    ProjectStatus,
    Task,
    TaskComment,
    TaskStatus,
    Team,
    TeamMember,
    TeamMemberRole,
)
from .notification_triggers import (
    notify_comment_added,
    notify_task_assigned,
    notify_task_completed,
    notify_team_invite,
)
from .permissions import (
    MANAGER_ROLES,
    authorize,
    authorize_project,
    authorize_task,
    can_delete,
    get_projects_for_user,
    get_tasks_for_user,
    get_teams_for_user,
    parse_pk,
)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


# =============================================================================
# Helpers
# =============================================================================

def paginate(queryset, page=1, limit=DEFAULT_PAGE_SIZE):
    """Страница выборки + метаданные пагинации."""
    try:
        limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    return list(page_obj.object_list), {
        'page': page_obj.number,
        'limit': limit,
        'total': paginator.count,
        'pages': paginator.num_pages,
    }


def parse_datetime_value(value, field):
    """ISO-дата или дата-время в aware datetime (UTC). Пустое значение → None."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(str(value))
            day = parse_date(str(value)) if parsed is None else None
        except ValueError:
            raise BadRequest(f'Invalid date for {field}')
        if parsed is None:
            if day is None:
                raise BadRequest(f'Invalid date for {field}')
            parsed = datetime.combine(day, time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def _clean_text(value, field, min_length=0, max_length=None, required=False):
    if value is not None and not isinstance(value, str):
        raise BadRequest(f'{field} must be a string')
    text = (value or '').strip()
    if required and not text:
        raise BadRequest(f'{field} is required')
    if text and len(text) < min_length:
        raise BadRequest(f'{field} must be at least {min_length} characters')
    if max_length is not None and len(text) > max_length:
        raise BadRequest(f'{field} cannot exceed {max_length} characters')
    return text


def _choice(value, choices_cls, field):
    if value not in choices_cls.values:
        raise BadRequest(f'Invalid {field}: {value}')
    return value


def _hours(value, field):
    if value in (None, ''):
        return None
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise BadRequest(f'{field} must be a number')
    if hours < 0:
        raise BadRequest(f'{field} cannot be negative')
    return hours


def _tags(value):
    if value in (None, ''):
        return []
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple)):
        raise BadRequest('tags must be a list of strings')
    return [str(t).strip() for t in value if str(t).strip()]


# =============================================================================
# Teams
# =============================================================================

class TeamService:
    @staticmethod
    def create(user, data) -> Team:
        name = _clean_text(data.get('name'), 'name', min_length=2, max_length=100, required=True)
        description = _clean_text(data.get('description'), 'description', max_length=500)
        with transaction.atomic():
            team = Team.objects.create(name=name, description=description, created_by=user)
            TeamMember.objects.create(team=team, user=user, role=TeamMemberRole.OWNER)
        logger.info(f"Team {team.id} created by user {user.id}")
        return team

    @staticmethod
    def list_for_user(user, search=None, page=1, limit=DEFAULT_PAGE_SIZE):
        qs = get_teams_for_user(user)
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))
        return paginate(qs.order_by('name', 'id'), page, limit)

    @staticmethod
    def get(user, team_id) -> Team:
        authorize(user, team_id)
        return Team.objects.get(pk=team_id)

    @staticmethod
    def update(user, team_id, data) -> Team:
        authorize(user, team_id, MANAGER_ROLES)
        team = Team.objects.get(pk=team_id)
        if 'name' in data:
            team.name = _clean_text(data.get('name'), 'name', min_length=2, max_length=100, required=True)
        if 'description' in data:
            team.description = _clean_text(data.get('description'), 'description', max_length=500)
        team.save()
        return team

    @staticmethod
    def delete(user, team_id) -> None:
        """Soft delete: команда деактивируется, проекты и задачи остаются в базе."""
        authorize(user, team_id, [TeamMemberRole.OWNER])
        Team.objects.filter(pk=team_id).update(is_active=False, updated_at=timezone.now())
        logger.info(f"Team {team_id} deactivated by user {user.id}")

    @staticmethod
    def add_member(user, team_id, user_id, role=TeamMemberRole.CONTRIBUTOR) -> TeamMember:
        authorize(user, team_id, MANAGER_ROLES)
        role = role or TeamMemberRole.CONTRIBUTOR
        _choice(role, TeamMemberRole, 'role')
        if role == TeamMemberRole.OWNER:
            raise BadRequest('Cannot assign owner role')

        new_user = User.objects.filter(pk=user_id, is_active=True).first() if str(user_id).isdigit() else None
        if new_user is None:
            raise NotFound('User not found')
        if TeamMember.objects.filter(team_id=team_id, user=new_user).exists():
            raise BadRequest('User is already a member of this team')

        member = TeamMember.objects.create(team_id=team_id, user=new_user, role=role)
        notify_team_invite(member.team, new_user, user)
        logger.info(f"User {new_user.id} added to team {team_id} as {role}")
        return member

    @staticmethod
    def remove_member(user, team_id, user_id) -> None:
        authorize(user, team_id, MANAGER_ROLES)
        member = TeamMember.objects.filter(team_id=team_id, user_id=user_id).first()
        if member is None:
            raise NotFound('Member not found in this team')
        if member.role == TeamMemberRole.OWNER:
            raise BadRequest('Cannot remove team owner')
        member.delete()
        logger.info(f"User {user_id} removed from team {team_id}")

    @staticmethod
    def change_member_role(user, team_id, user_id, role) -> TeamMember:
        authorize(user, team_id, [TeamMemberRole.OWNER])
        _choice(role, TeamMemberRole, 'role')
        member = TeamMember.objects.filter(team_id=team_id, user_id=user_id).first()
        if member is None:
            raise NotFound('Member not found in this team')
        if member.role == TeamMemberRole.OWNER:
            raise BadRequest('Cannot change owner role')
        if role == TeamMemberRole.OWNER:
            raise BadRequest('Cannot assign owner role')
        member.role = role
        member.save(update_fields=['role'])
        return member


# =============================================================================
# Projects
# =============================================================================

class ProjectService:
    @staticmethod
    def _apply_fields(project, data, creating=False):
        if creating or 'name' in data:
            project.name = _clean_text(data.get('name'), 'name', min_length=3, max_length=100, required=True)
        if 'description' in data:
            project.description = _clean_text(data.get('description'), 'description', max_length=1000)
        if 'status' in data:
            project.status = _choice(data['status'], ProjectStatus, 'status')
        if 'priority' in data:
            project.priority = _choice(data['priority'], Priority, 'priority')
        if 'start_date' in data:
            project.start_date = parse_datetime_value(data['start_date'], 'start_date')
        if 'end_date' in data:
            project.end_date = parse_datetime_value(data['end_date'], 'end_date')
        if 'tags' in data:
            project.tags = _tags(data['tags'])
        if project.start_date and project.end_date and project.end_date < project.start_date:
            raise BadRequest('End date must be after start date')

    @staticmethod
    def create(user, data) -> Project:
        team_id = data.get('team')
        if not team_id:
            raise BadRequest('team is required')
        team_id = authorize(user, team_id).team_id
        project = Project(team_id=team_id, created_by=user)
        ProjectService._apply_fields(project, data, creating=True)
        project.save()
        logger.info(f"Project {project.id} created in team {team_id} by user {user.id}")
        return project

    @staticmethod
    def _with_counts(qs):
        return qs.annotate(
            task_count=Count('tasks', distinct=True),
            completed_count=Count('tasks', filter=Q(tasks__status=TaskStatus.COMPLETED), distinct=True),
        )

    @staticmethod
    def list_for_user(user, filters=None, page=1, limit=DEFAULT_PAGE_SIZE):
        filters = filters or {}
        qs = get_projects_for_user(user).select_related('team')
        if filters.get('team'):
            qs = qs.filter(team_id=parse_pk(filters['team'], 'team'))
        if filters.get('status'):
            qs = qs.filter(status=filters['status'])
        if filters.get('priority'):
            qs = qs.filter(priority=filters['priority'])
        if filters.get('search'):
            qs = qs.filter(Q(name__icontains=filters['search']) | Q(description__icontains=filters['search']))
        qs = ProjectService._with_counts(qs).order_by('-created_at', '-id')
        return paginate(qs, page, limit)

    @staticmethod
    def get(user, project_id) -> Project:
        project, _ = authorize_project(user, project_id)
        return ProjectService._with_counts(Project.objects.select_related('team')).get(pk=project.pk)

    @staticmethod
    def update(user, project_id, data) -> Project:
        project, _ = authorize_project(user, project_id)
        if 'team' in data and str(data['team']) != str(project.team_id):
            raise BadRequest('Project team cannot be changed')
        ProjectService._apply_fields(project, data)
        project.save()
        return project

    @staticmethod
    def update_status(user, project_id, status) -> Project:
        project, _ = authorize_project(user, project_id)
        project.status = _choice(status, ProjectStatus, 'status')
        project.save(update_fields=['status', 'updated_at'])
        return project

    @staticmethod
    def delete(user, project_id) -> int:
        """Удаление проекта вместе со всеми задачами. Возвращает число удалённых задач."""
        project, member = authorize_project(user, project_id)
        if not can_delete(member, project):
            raise Forbidden('Only the project creator or team owner/admin can delete this project')
        with transaction.atomic():
            task_count = project.tasks.count()
            project.delete()
        logger.info(f"Project {project_id} deleted with {task_count} tasks by user {user.id}")
        return task_count

    @staticmethod
    def list_for_team(user, team_id):
        authorize(user, team_id)
        qs = Project.objects.filter(team_id=team_id).select_related('team')
        return list(ProjectService._with_counts(qs).order_by('-created_at', '-id'))


# =============================================================================
# Tasks
# =============================================================================

class TaskService:
    @staticmethod
    def _resolve_assignee(value, team_id):
        if value in (None, ''):
            return None
        member = TeamMember.objects.select_related('user').filter(
            team_id=team_id, user_id=value
        ).first() if str(value).isdigit() else None
        if member is None:
            raise BadRequest('Assigned user must be a member of the team')
        return member.user

    @staticmethod
    def _apply_fields(task, data, creating=False):
        if creating or 'title' in data:
            task.title = _clean_text(data.get('title'), 'title', min_length=3, max_length=200, required=True)
        if 'description' in data:
            task.description = _clean_text(data.get('description'), 'description', max_length=2000)
        if 'status' in data:
            task.status = _choice(data['status'], TaskStatus, 'status')
        if 'priority' in data:
            task.priority = _choice(data['priority'], Priority, 'priority')
        if 'deadline' in data:
            task.deadline = parse_datetime_value(data['deadline'], 'deadline')
        if 'estimated_hours' in data:
            task.estimated_hours = _hours(data['estimated_hours'], 'estimated_hours')
        if 'actual_hours' in data:
            task.actual_hours = _hours(data['actual_hours'], 'actual_hours')
        if 'tags' in data:
            task.tags = _tags(data['tags'])

    @staticmethod
    def create(user, data) -> Task:
        project_id = data.get('project')
        project = Project.objects.filter(pk=parse_pk(project_id, 'project')).first() if project_id else None
        if project is None:
            raise NotFound('Project not found')
        authorize(user, project.team_id)

        task = Task(project=project, created_by=user)
        TaskService._apply_fields(task, data, creating=True)
        task.assigned_to = TaskService._resolve_assignee(data.get('assigned_to'), project.team_id)

        parent_id = data.get('parent_task')
        if parent_id:
            parent = Task.objects.filter(pk=parse_pk(parent_id, 'parent_task')).first()
            if parent is None:
                raise NotFound('Parent task not found')
            if parent.project_id != project.id:
                raise BadRequest('Parent task must belong to the same project')
            task.parent_task = parent

        task.save()
        if task.assigned_to:
            notify_task_assigned(task, task.assigned_to, user)
        logger.info(f"Task {task.id} created in project {project.id} by user {user.id}")
        return task

    @staticmethod
    def get(user, task_id) -> Task:
        task, _ = authorize_task(user, task_id)
        return task

    @staticmethod
    def list(user, filters=None, page=1, limit=DEFAULT_PAGE_SIZE):
        filters = filters or {}
        qs = get_tasks_for_user(user).select_related('created_by', 'assigned_to')
        if filters.get('project'):
            qs = qs.filter(project_id=parse_pk(filters['project'], 'project'))
        if filters.get('assigned_to'):
            assignee = user.id if filters['assigned_to'] == 'me' else parse_pk(filters['assigned_to'], 'assigned_to')
            qs = qs.filter(assigned_to_id=assignee)
        if filters.get('status'):
            qs = qs.filter(status=filters['status'])
        if filters.get('priority'):
            qs = qs.filter(priority=filters['priority'])
        if str(filters.get('overdue', '')).lower() in ('1', 'true', 'yes'):
            qs = qs.filter(deadline__lt=timezone.now()).exclude(status=TaskStatus.COMPLETED)
        if filters.get('search'):
            qs = qs.filter(Q(title__icontains=filters['search']) | Q(description__icontains=filters['search']))
        if filters.get('tags'):
            wanted = set(_tags(filters['tags']))
            # JSON contains не поддерживается SQLite, фильтруем в Python
            ids = [pk for pk, tags in qs.values_list('id', 'tags') if wanted & set(tags or [])]
            qs = qs.filter(id__in=ids)
        return paginate(qs.order_by('-created_at', '-id'), page, limit)

    @staticmethod
    def list_assigned(user, status=None):
        qs = Task.objects.filter(assigned_to=user, project__team__is_active=True).select_related(
            'created_by', 'assigned_to', 'project'
        )
        if status:
            qs = qs.filter(status=status)
        return list(qs.order_by(F('deadline').asc(nulls_last=True), '-created_at'))

    @staticmethod
    def list_created(user):
        qs = Task.objects.filter(created_by=user).select_related('created_by', 'assigned_to', 'project')
        return list(qs.order_by('-created_at', '-id'))

    @staticmethod
    def update(user, task_id, data) -> Task:
        task, _ = authorize_task(user, task_id)
        if 'project' in data and str(data['project']) != str(task.project_id):
            raise BadRequest('Task project cannot be changed')

        previous_status = task.status
        previous_assignee_id = task.assigned_to_id

        TaskService._apply_fields(task, data)
        if 'assigned_to' in data:
            task.assigned_to = TaskService._resolve_assignee(data.get('assigned_to'), task.project.team_id)
        task.save()

        if task.assigned_to_id and task.assigned_to_id != previous_assignee_id:
            notify_task_assigned(task, task.assigned_to, user)
        if (
            task.status == TaskStatus.COMPLETED
            and previous_status != TaskStatus.COMPLETED
            and task.assigned_to_id
        ):
            notify_task_completed(task, user)
        return task

    @staticmethod
    def delete(user, task_id) -> int:
        """
        Удалить задачу: сначала подзадачи (каскадом), затем ссылки на задачу
        в зависимостях других задач, затем саму задачу. Возвращает число удалённых задач.
        """
        task, member = authorize_task(user, task_id)
        if not can_delete(member, task):
            raise Forbidden('Only the task creator or team owner/admin can delete this task')

        with transaction.atomic():
            _, per_model = Task.objects.filter(parent_task=task).delete()
            deleted = per_model.get(Task._meta.label, 0)
            task.dependents.clear()
            task.delete()
        logger.info(f"Task {task_id} deleted with {deleted} subtasks by user {user.id}")
        return deleted + 1

    @staticmethod
    def add_comment(user, task_id, content) -> TaskComment:
        task, _ = authorize_task(user, task_id)
        content = _clean_text(content, 'content', max_length=500, required=True)
        comment = TaskComment.objects.create(task=task, author=user, content=content)
        notify_comment_added(task, user)
        return comment

    @staticmethod
    def _depends_on(start, target_id) -> bool:
        """Есть ли путь по зависимостям от start до target_id."""
        seen = set()
        frontier = [start.pk]
        while frontier:
            current = frontier.pop()
            if current == target_id:
                return True
            if current in seen:
                continue
            seen.add(current)
            frontier.extend(
                Task.dependencies.through.objects.filter(from_task_id=current).values_list('to_task_id', flat=True)
            )
        return False

    @staticmethod
    def add_dependency(user, task_id, dependency_id) -> Task:
        task, _ = authorize_task(user, task_id)
        dependency = Task.objects.filter(pk=dependency_id).first() if str(dependency_id).isdigit() else None
        if dependency is None:
            raise NotFound('Dependency task not found')
        if dependency.project_id != task.project_id:
            raise BadRequest('Dependencies must be in the same project')
        if dependency.pk == task.pk:
            raise BadRequest('A task cannot depend on itself')
        if task.dependencies.filter(pk=dependency.pk).exists():
            raise BadRequest('Dependency already exists')
        if TaskService._depends_on(dependency, task.pk):
            raise BadRequest('Dependency would create a cycle')
        task.dependencies.add(dependency)
        return task

    @staticmethod
    def remove_dependency(user, task_id, dependency_id) -> Task:
        task, _ = authorize_task(user, task_id)
        if str(dependency_id).isdigit():
            task.dependencies.remove(int(dependency_id))
        return task


# =============================================================================
# Notifications
# =============================================================================

class NotificationService:
    @staticmethod
    def list(user, unread_only=False, page=1, limit=DEFAULT_PAGE_SIZE):
        qs = Notification.objects.filter(user=user)
        unread_count = qs.filter(is_read=False).count()
        if unread_only:
            qs = qs.filter(is_read=False)
        items, meta = paginate(qs.order_by('-created_at', '-id'), page, limit)
        meta['unread_count'] = unread_count
        return items, meta

    @staticmethod
    def mark_read(user, notification_id) -> Notification:
        notification = Notification.objects.filter(pk=notification_id, user=user).first()
        if notification is None:
            raise NotFound('Notification not found')
        notification.mark_read()
        return notification

    @staticmethod
    def mark_all_read(user) -> int:
        return Notification.objects.filter(user=user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
