"""
Аналитика по задачам: загрузка команды, статистика проекта, дашборд пользователя,
история исполнителя, тренды завершения.

Все функции только читают данные и пересчитывают результат при каждом вызове.
"""
from collections import Counter, defaultdict
from datetime import timedelta, timezone as dt_timezone

from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone

from accounts.models import User
from .models import Priority, Project, ProjectStatus, Task, TaskStatus, TeamMember

HISTORY_LIMIT = 50
TOP_TAGS = 5
UPCOMING_LIMIT = 5
TREND_DAYS = 30


def _round1(value):
    return round(float(value or 0), 1)


def _rate(part, total):
    return round(part / total * 100, 1) if total else 0


def _status_facets(qs):
    """Гистограммы по статусу и приоритету + сводный блок."""
    now = timezone.now()
    by_status = {s: 0 for s in TaskStatus.values}
    for row in qs.values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    by_priority = {p: 0 for p in Priority.values}
    for row in qs.values('priority').annotate(count=Count('id')):
        by_priority[row['priority']] = row['count']

    overall = qs.aggregate(
        total=Count('id'),
        completed=Count('id', filter=Q(status=TaskStatus.COMPLETED)),
        overdue=Count('id', filter=Q(deadline__lt=now) & ~Q(status=TaskStatus.COMPLETED)),
        total_estimated_hours=Sum('estimated_hours'),
        total_actual_hours=Sum('actual_hours'),
        avg_estimated_hours=Avg('estimated_hours'),
        avg_actual_hours=Avg('actual_hours'),
    )
    return by_status, by_priority, overall


def team_workload(team_id):
    """
    Загрузка участников команды по всем задачам её проектов.
    Список по исполнителям, отсортирован по общему числу задач (убывание).
    """
    now = timezone.now()
    rows = (
        Task.objects.filter(project__team_id=team_id, assigned_to__isnull=False)
        .values('assigned_to')
        .annotate(
            total_tasks=Count('id'),
            completed_tasks=Count('id', filter=Q(status=TaskStatus.COMPLETED)),
            in_progress_tasks=Count('id', filter=Q(status=TaskStatus.IN_PROGRESS)),
            todo_tasks=Count('id', filter=Q(status=TaskStatus.TODO)),
            overdue_tasks=Count('id', filter=Q(deadline__lt=now) & ~Q(status=TaskStatus.COMPLETED)),
            total_estimated_hours=Sum('estimated_hours'),
            total_actual_hours=Sum('actual_hours'),
        )
        .order_by('-total_tasks', 'assigned_to')
    )

    users = User.objects.in_bulk([r['assigned_to'] for r in rows])
    workload = []
    for r in rows:
        user = users.get(r['assigned_to'])
        workload.append({
            'user_id': r['assigned_to'],
            'name': user.name if user else 'Unknown',
            'email': user.email if user else '',
            'total_tasks': r['total_tasks'],
            'completed_tasks': r['completed_tasks'],
            'in_progress_tasks': r['in_progress_tasks'],
            'todo_tasks': r['todo_tasks'],
            'overdue_tasks': r['overdue_tasks'],
            'active_tasks': r['total_tasks'] - r['completed_tasks'],
            'total_estimated_hours': _round1(r['total_estimated_hours']),
            'total_actual_hours': _round1(r['total_actual_hours']),
            'completion_rate': _rate(r['completed_tasks'], r['total_tasks']),
        })
    return workload


def project_stats(project_id):
    """Статистика проекта: статусы, приоритеты, часы, исполнители."""
    qs = Task.objects.filter(project_id=project_id)
    by_status, by_priority, overall = _status_facets(qs)

    total_est = overall['total_estimated_hours'] or 0
    total_act = overall['total_actual_hours'] or 0

    assignees = []
    for row in (
        qs.filter(assigned_to__isnull=False)
        .values('assigned_to', 'assigned_to__name', 'assigned_to__email')
        .annotate(
            task_count=Count('id'),
            completed_count=Count('id', filter=Q(status=TaskStatus.COMPLETED)),
        )
        .order_by('-task_count', 'assigned_to')
    ):
        assignees.append({
            'user_id': row['assigned_to'],
            'name': row['assigned_to__name'],
            'email': row['assigned_to__email'],
            'task_count': row['task_count'],
            'completed_count': row['completed_count'],
        })

    return {
        'by_status': by_status,
        'by_priority': by_priority,
        'overall': {
            'total_tasks': overall['total'],
            'completed_tasks': overall['completed'],
            'overdue_tasks': overall['overdue'],
            'completion_rate': _rate(overall['completed'], overall['total']),
            'total_estimated_hours': _round1(total_est),
            'total_actual_hours': _round1(total_act),
            'avg_estimated_hours': _round1(overall['avg_estimated_hours']),
            'avg_actual_hours': _round1(overall['avg_actual_hours']),
            'hours_variance': _round1(total_act - total_est),
        },
        'assignees': assignees,
    }


def user_dashboard(user_id):
    """Дашборд пользователя по задачам в проектах его команд."""
    team_ids = list(
        TeamMember.objects.filter(user_id=user_id, team__is_active=True).values_list('team_id', flat=True)
    )
    qs = Task.objects.filter(assigned_to_id=user_id, project__team_id__in=team_ids)
    by_status, by_priority, overall = _status_facets(qs)

    upcoming = (
        qs.filter(deadline__gte=timezone.now())
        .exclude(status=TaskStatus.COMPLETED)
        .select_related('project')
        .order_by('deadline', 'id')[:UPCOMING_LIMIT]
    )

    return {
        'tasks': {
            'by_status': by_status,
            'by_priority': by_priority,
            'total': overall['total'],
            'completed': overall['completed'],
            'overdue': overall['overdue'],
            'completion_rate': _rate(overall['completed'], overall['total']),
        },
        'upcoming_deadlines': [
            {
                'id': t.id,
                'title': t.title,
                'deadline': t.deadline,
                'status': t.status,
                'priority': t.priority,
                'project': {'id': t.project_id, 'name': t.project.name},
            }
            for t in upcoming
        ],
        'created_tasks': Task.objects.filter(created_by_id=user_id).count(),
        'active_projects': Project.objects.filter(team_id__in=team_ids, status=ProjectStatus.ACTIVE).count(),
        'teams': len(team_ids),
    }


def member_performance_history(user_id, team_id):
    """
    История исполнителя по последним завершённым задачам в проектах команды.

    avg_completion_time в днях (updated_at - created_at); accuracy в процентах:
    1 - |actual - estimated| / estimated, не меньше 0, среднее по задачам с обоими значениями.
    """
    tasks = list(
        Task.objects.filter(
            assigned_to_id=user_id,
            project__team_id=team_id,
            status=TaskStatus.COMPLETED,
        ).order_by('-updated_at', '-id')[:HISTORY_LIMIT]
    )
    if not tasks:
        return {
            'tasks_completed': 0,
            'avg_completion_time': 0,
            'accuracy': 0,
            'common_tags': [],
            'preferred_priority': None,
        }

    durations = [(t.updated_at - t.created_at).total_seconds() / 86400 for t in tasks]

    accuracies = [
        max(0.0, 1 - abs(t.actual_hours - t.estimated_hours) / t.estimated_hours)
        for t in tasks
        if t.estimated_hours and t.estimated_hours > 0 and t.actual_hours is not None
    ]
    accuracy = sum(accuracies) / len(accuracies) * 100 if accuracies else 0

    tag_counts = Counter(tag for t in tasks for tag in (t.tags or []))
    priority_counts = Counter(t.priority for t in tasks)

    return {
        'tasks_completed': len(tasks),
        'avg_completion_time': _round1(sum(durations) / len(durations)),
        'accuracy': _round1(accuracy),
        'common_tags': [tag for tag, _ in tag_counts.most_common(TOP_TAGS)],
        'preferred_priority': priority_counts.most_common(1)[0][0],
    }


def task_completion_trends(project_id, days=TREND_DAYS):
    """Число завершённых задач по дням (UTC) за последние days дней. Пустые дни не заполняются."""
    since = timezone.now() - timedelta(days=days)
    per_day = defaultdict(int)
    for updated_at in Task.objects.filter(
        project_id=project_id,
        status=TaskStatus.COMPLETED,
        updated_at__gte=since,
    ).values_list('updated_at', flat=True):
        per_day[updated_at.astimezone(dt_timezone.utc).date().isoformat()] += 1
    return [{'date': day, 'count': per_day[day]} for day in sorted(per_day)]
