"""
Преобразование моделей в JSON-совместимые словари для API.
"""


def user_brief(user):
    if user is None:
        return None
    return {'id': user.id, 'name': user.name, 'email': user.email}


def team_to_dict(team, with_members=True):
    data = {
        'id': team.id,
        'name': team.name,
        'description': team.description,
        'created_by': team.created_by_id,
        'is_active': team.is_active,
        'created_at': team.created_at,
        'updated_at': team.updated_at,
    }
    if with_members:
        data['members'] = [
            {
                'user': user_brief(m.user),
                'role': m.role,
                'joined_at': m.joined_at,
            }
            for m in team.members.select_related('user')
        ]
    return data


def project_to_dict(project):
    data = {
        'id': project.id,
        'name': project.name,
        'description': project.description,
        'team': {'id': project.team_id, 'name': project.team.name},
        'created_by': project.created_by_id,
        'status': project.status,
        'priority': project.priority,
        'start_date': project.start_date,
        'end_date': project.end_date,
        'tags': project.tags,
        'created_at': project.created_at,
        'updated_at': project.updated_at,
    }
    # Аннотации из списков проектов
    for attr in ('task_count', 'completed_count'):
        if hasattr(project, attr):
            data[attr] = getattr(project, attr)
    return data


def comment_to_dict(comment):
    return {
        'id': comment.id,
        'author': user_brief(comment.author),
        'content': comment.content,
        'created_at': comment.created_at,
    }


def suggestion_to_dict(suggestion):
    return {
        'id': suggestion.id,
        'task': suggestion.task_id,
        'kind': suggestion.kind,
        'payload': suggestion.payload,
        'reasoning': suggestion.reasoning,
        'confidence': suggestion.confidence,
        'created_at': suggestion.created_at,
    }


def task_to_dict(task, detail=False):
    data = {
        'id': task.id,
        'title': task.title,
        'description': task.description,
        'project': task.project_id,
        'created_by': user_brief(task.created_by),
        'assigned_to': user_brief(task.assigned_to),
        'status': task.status,
        'priority': task.priority,
        'deadline': task.deadline,
        'estimated_hours': task.estimated_hours,
        'actual_hours': task.actual_hours,
        'tags': task.tags,
        'parent_task': task.parent_task_id,
        'dependencies': [t.id for t in task.dependencies.all()],
        'is_overdue': task.is_overdue,
        'created_at': task.created_at,
        'updated_at': task.updated_at,
    }
    if detail:
        data['comments'] = [comment_to_dict(c) for c in task.comments.select_related('author')]
        data['ai_suggestions'] = [suggestion_to_dict(s) for s in task.ai_suggestions.all()]
        data['subtasks'] = [
            {'id': s.id, 'title': s.title, 'status': s.status, 'assigned_to': s.assigned_to_id}
            for s in task.subtasks.all()
        ]
    return data


def notification_to_dict(notification):
    return {
        'id': notification.id,
        'type': notification.notification_type,
        'title': notification.title,
        'message': notification.message,
        'task': notification.task_id,
        'project': notification.project_id,
        'team': notification.team_id,
        'is_read': notification.is_read,
        'read_at': notification.read_at,
        'created_at': notification.created_at,
    }
