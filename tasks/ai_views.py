"""
Views для подсказок ИИ по задачам.
"""
import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from accounts.decorators import token_required
from app.core.exceptions import BadRequest
from app.utils.responses import api_success, api_view, parse_json_body
from .ai_assistant import DEFAULT_MAX_SUBTASKS, TaskAIAssistant
from .serializers import suggestion_to_dict

logger = logging.getLogger(__name__)


def _task_id(request):
    data = parse_json_body(request)
    task_id = data.get('taskId')
    if not task_id:
        raise BadRequest('taskId is required')
    return task_id, data


@csrf_exempt
@require_POST
@api_view
@token_required
def suggest_assignee(request):
    task_id, _ = _task_id(request)
    result = TaskAIAssistant().suggest_assignee(request.user, task_id)
    return api_success(result, message='Assignee suggestion generated')


@csrf_exempt
@require_POST
@api_view
@token_required
def suggest_deadline(request):
    task_id, _ = _task_id(request)
    result = TaskAIAssistant().suggest_deadline(request.user, task_id)
    return api_success(result, message='Deadline suggestion generated')


@csrf_exempt
@require_POST
@api_view
@token_required
def suggest_priority(request):
    task_id, _ = _task_id(request)
    result = TaskAIAssistant().suggest_priority(request.user, task_id)
    return api_success(result, message='Priority suggestion generated')


@csrf_exempt
@require_POST
@api_view
@token_required
def breakdown_task(request):
    task_id, data = _task_id(request)
    result = TaskAIAssistant().breakdown_task(
        request.user, task_id, data.get('maxSubtasks', DEFAULT_MAX_SUBTASKS)
    )
    logger.info("Breakdown for task %s: %s subtasks", task_id, len(result['subtasks']))
    return api_success(result, message='Task breakdown generated')


@require_GET
@api_view
@token_required
def task_suggestions(request, task_id):
    task, suggestions = TaskAIAssistant.get_task_suggestions(request.user, task_id, request.GET.get('kind'))
    return api_success({
        'task_id': task.id,
        'task_title': task.title,
        'suggestions': [suggestion_to_dict(s) for s in suggestions],
    })


@require_GET
@api_view
@token_required
def ai_usage(request):
    return api_success(TaskAIAssistant.get_ai_usage(request.user))
