"""
Views для задач, комментариев, зависимостей и уведомлений.
"""
import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.decorators import token_required
from app.utils.responses import api_created, api_success, api_view, parse_json_body
from .serializers import comment_to_dict, notification_to_dict, task_to_dict
from .services import NotificationService, TaskService

logger = logging.getLogger(__name__)

TASK_FILTERS = ('project', 'assigned_to', 'status', 'priority', 'overdue', 'search', 'tags')


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_view
@token_required
def tasks(request):
    if request.method == 'POST':
        task = TaskService.create(request.user, parse_json_body(request))
        return api_created({'task': task_to_dict(task)}, message='Task created successfully')

    filters = {key: request.GET.get(key) for key in TASK_FILTERS}
    items, pagination = TaskService.list(
        request.user,
        filters,
        page=request.GET.get('page', 1),
        limit=request.GET.get('limit'),
    )
    return api_success({'tasks': [task_to_dict(t) for t in items], 'pagination': pagination})


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
@api_view
@token_required
def task_detail(request, pk):
    if request.method == 'DELETE':
        deleted = TaskService.delete(request.user, pk)
        return api_success({'deleted_tasks': deleted}, message='Task deleted successfully')

    if request.method in ('PUT', 'PATCH'):
        task = TaskService.update(request.user, pk, parse_json_body(request))
        return api_success({'task': task_to_dict(task)}, message='Task updated successfully')

    task = TaskService.get(request.user, pk)
    return api_success({'task': task_to_dict(task, detail=True)})


@require_GET
@api_view
@token_required
def my_assigned_tasks(request):
    items = TaskService.list_assigned(request.user, status=request.GET.get('status'))
    return api_success({'tasks': [task_to_dict(t) for t in items], 'count': len(items)})


@require_GET
@api_view
@token_required
def my_created_tasks(request):
    items = TaskService.list_created(request.user)
    return api_success({'tasks': [task_to_dict(t) for t in items], 'count': len(items)})


@csrf_exempt
@require_POST
@api_view
@token_required
def task_comment_add(request, pk):
    data = parse_json_body(request)
    comment = TaskService.add_comment(request.user, pk, data.get('content'))
    return api_created({'comment': comment_to_dict(comment)}, message='Comment added successfully')


@csrf_exempt
@require_POST
@api_view
@token_required
def task_dependency_add(request, pk):
    data = parse_json_body(request)
    task = TaskService.add_dependency(request.user, pk, data.get('dependencyId'))
    return api_success({'task': task_to_dict(task)}, message='Dependency added successfully')


@csrf_exempt
@require_http_methods(['DELETE'])
@api_view
@token_required
def task_dependency_remove(request, pk, dependency_id):
    task = TaskService.remove_dependency(request.user, pk, dependency_id)
    return api_success({'task': task_to_dict(task)}, message='Dependency removed successfully')


# =============================================================================
# Notifications
# =============================================================================

@require_GET
@api_view
@token_required
def notifications_list(request):
    unread_only = request.GET.get('unread') in ('1', 'true', 'yes')
    items, pagination = NotificationService.list(
        request.user,
        unread_only=unread_only,
        page=request.GET.get('page', 1),
        limit=request.GET.get('limit'),
    )
    return api_success({
        'notifications': [notification_to_dict(n) for n in items],
        'pagination': pagination,
    })


@csrf_exempt
@require_POST
@api_view
@token_required
def notification_mark_read(request, pk):
    notification = NotificationService.mark_read(request.user, pk)
    return api_success({'notification': notification_to_dict(notification)})


@csrf_exempt
@require_POST
@api_view
@token_required
def notifications_mark_all_read(request):
    updated = NotificationService.mark_all_read(request.user)
    logger.info("Marked %s notifications read for user %s", updated, request.user.id)
    return api_success({'updated': updated})
