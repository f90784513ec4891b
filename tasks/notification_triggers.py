"""
Триггеры уведомлений: создание Notification при событиях по задачам.

Уведомления best-effort: ошибка записи логируется и не прерывает основную операцию.
"""
from django.db import transaction
from loguru import logger

from .models import Notification, NotificationType


def _create(**fields):
    try:
        with transaction.atomic():
            return Notification.objects.create(**fields)
    except Exception as e:
        logger.warning(f"Failed to create {fields.get('notification_type')} notification: {e}")
        return None


def notify_task_assigned(task, assignee, assigned_by):
    """Уведомление исполнителю о назначении. Самоназначение не уведомляется."""
    if assignee is None or assignee.pk == assigned_by.pk:
        return None
    return _create(
        user=assignee,
        notification_type=NotificationType.TASK_ASSIGNED,
        title='New task assigned',
        message=f'{assigned_by.name} assigned you to "{task.title}"'[:500],
        task=task,
        project_id=task.project_id,
    )


def notify_task_completed(task, completed_by):
    """Уведомление создателю задачи о её завершении."""
    return _create(
        user_id=task.created_by_id,
        notification_type=NotificationType.TASK_COMPLETED,
        title='Task completed',
        message=f'{completed_by.name} completed "{task.title}"'[:500],
        task=task,
        project_id=task.project_id,
    )


def notify_comment_added(task, author):
    """Уведомление создателю и исполнителю (без автора комментария, без дублей)."""
    recipients = []
    for uid in (task.created_by_id, task.assigned_to_id):
        if uid and uid != author.pk and uid not in recipients:
            recipients.append(uid)

    created = []
    for uid in recipients:
        notification = _create(
            user_id=uid,
            notification_type=NotificationType.COMMENT_ADDED,
            title='New comment',
            message=f'{author.name} commented on "{task.title}"'[:500],
            task=task,
            project_id=task.project_id,
        )
        if notification is not None:
            created.append(notification)
    return created


def notify_team_invite(team, user, invited_by):
    """Уведомление пользователю о добавлении в команду."""
    return _create(
        user=user,
        notification_type=NotificationType.TEAM_INVITE,
        title='Added to team',
        message=f'{invited_by.name} added you to team "{team.name}"'[:500],
        team=team,
    )
