"""
AI Assistant for Task Management
Suggests assignee, deadline, priority and subtask breakdown for a task.

Each suggestion: context from the database, a prompt per kind, one model call,
validation and repair of the reply, then the suggestion is stored on the task.
If the model is unreachable a canned result is returned and nothing is stored.
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional

from asgiref.sync import async_to_sync
from django.apps import apps
from django.db.models import Avg, Count
from django.utils import timezone
from loguru import logger

from app.core.exceptions import BadRequest, ExternalServiceError
from app.core.llm import LLMProvider
from app.core.model_config import AIConfig
from .ai_responses import AIReply, validate_reply
from .analytics import member_performance_history, team_workload
from .models import AISuggestion, AISuggestionType, Task, TeamMember
from .permissions import authorize_task
from .prompt_builder import (
    MemberContext,
    TaskContext,
    build_assignee_prompt,
    build_breakdown_prompt,
    build_deadline_prompt,
    build_priority_prompt,
)

FALLBACK_CONFIDENCE = 0.3
NEW_TEAM_MAX_CONFIDENCE = 0.5
DEFAULT_DEADLINE_DAYS = 3
DEFAULT_MAX_SUBTASKS = 5
MAX_SUBTASKS_LIMIT = 10


class TaskAIAssistant:
    """AI assistant for task planning suggestions"""

    def __init__(self, llm=None, config: Optional[AIConfig] = None):
        if llm is None:
            config = config or apps.get_app_config('tasks').ai_config or AIConfig.from_settings()
            llm = LLMProvider(config)
        self.llm = llm

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    @staticmethod
    def _task_context(task: Task) -> TaskContext:
        return TaskContext(
            task_id=task.id,
            title=task.title,
            description=task.description,
            tags=list(task.tags or []),
            estimated_hours=task.estimated_hours,
            priority=task.priority,
            project_name=task.project.name,
            team_name=task.project.team.name,
        )

    @staticmethod
    def _member_context(user, team_id, workload: Dict[int, int]) -> MemberContext:
        history = member_performance_history(user.id, team_id)
        return MemberContext(
            user_id=user.id,
            name=user.name,
            email=user.email,
            tasks_completed=history['tasks_completed'],
            avg_completion_time=history['avg_completion_time'],
            accuracy=history['accuracy'],
            common_tags=history['common_tags'],
            current_workload=workload.get(user.id, 0),
            preferred_priority=history['preferred_priority'],
        )

    @staticmethod
    def _workload(team_id) -> Dict[int, int]:
        return {row['user_id']: row['active_tasks'] for row in team_workload(team_id)}

    def _team_contexts(self, team_id) -> List[MemberContext]:
        workload = self._workload(team_id)
        members = TeamMember.objects.filter(team_id=team_id).select_related('user')
        return [self._member_context(m.user, team_id, workload) for m in members]

    @staticmethod
    def _least_busy(members: List[MemberContext]) -> MemberContext:
        return min(members, key=lambda m: m.current_workload)

    def _ask(self, kind: str, prompt: str) -> AIReply:
        raw = async_to_sync(self.llm.generate_json)(prompt)
        return validate_reply(kind, raw)

    @staticmethod
    def _store(task: Task, kind: str, payload: Any, reply: AIReply) -> AISuggestion:
        return AISuggestion.objects.create(
            task=task,
            kind=kind,
            payload=payload,
            reasoning=reply.reasoning,
            confidence=reply.confidence,
        )

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def suggest_assignee(self, user, task_id) -> Dict[str, Any]:
        task, _ = authorize_task(user, task_id)
        team_id = task.project.team_id
        members = self._team_contexts(team_id)
        is_new_team = all(m.tasks_completed == 0 for m in members)

        prompt = build_assignee_prompt(self._task_context(task), members, is_new_team)
        try:
            reply = self._ask(AISuggestionType.ASSIGNEE, prompt)
        except ExternalServiceError as e:
            least = self._least_busy(members)
            logger.warning(f"AI assignee suggestion unavailable for task {task.id}: {e}. Using workload fallback.")
            return {
                'suggested_user_id': least.user_id,
                'suggested_user_name': least.name,
                'confidence': FALLBACK_CONFIDENCE,
                'reasoning': 'AI service unavailable. Using simple workload distribution.',
                'is_new_team': True,
                'disclaimer': 'AI temporarily unavailable. Using fallback logic.',
            }

        by_id = {str(m.user_id): m for m in members}
        if reply.suggested_user_id not in by_id:
            least = self._least_busy(members)
            logger.warning(
                f"AI suggested unknown user {reply.suggested_user_id!r} for task {task.id}, "
                f"falling back to {least.user_id}"
            )
            reply.suggested_user_id = str(least.user_id)
            reply.confidence = FALLBACK_CONFIDENCE
            reply.reasoning = (
                f"Fallback: {least.name} has the lowest workload ({least.current_workload} tasks)"
            )

        if is_new_team:
            reply.confidence = min(reply.confidence, NEW_TEAM_MAX_CONFIDENCE)

        suggested = by_id[reply.suggested_user_id]
        self._store(task, AISuggestionType.ASSIGNEE, {'user_id': suggested.user_id}, reply)
        logger.info(f"Assignee suggestion for task {task.id}: user {suggested.user_id} ({reply.confidence})")
        return {
            'suggested_user_id': suggested.user_id,
            'suggested_user_name': suggested.name,
            'confidence': reply.confidence,
            'reasoning': reply.reasoning,
            'is_new_team': bool(reply.is_new_team) or is_new_team,
            'disclaimer': reply.disclaimer,
        }

    def suggest_deadline(self, user, task_id) -> Dict[str, Any]:
        task, _ = authorize_task(user, task_id)
        team_id = task.project.team_id

        history = None
        if task.assigned_to_id:
            history = self._member_context(task.assigned_to, team_id, self._workload(team_id))
        is_new_team = history is None or history.tasks_completed == 0

        prompt = build_deadline_prompt(self._task_context(task), history)
        try:
            reply = self._ask(AISuggestionType.DEADLINE, prompt)
        except ExternalServiceError as e:
            logger.warning(f"AI deadline suggestion unavailable for task {task.id}: {e}. Using default estimate.")
            return {
                'suggested_deadline': timezone.now() + timedelta(days=DEFAULT_DEADLINE_DAYS),
                'suggested_days': DEFAULT_DEADLINE_DAYS,
                'confidence': FALLBACK_CONFIDENCE,
                'reasoning': 'AI unavailable. Default 3-day estimate.',
                'is_new_team': is_new_team,
                'disclaimer': 'AI temporarily unavailable.',
            }

        deadline = timezone.now() + timedelta(days=reply.suggested_days)
        self._store(
            task,
            AISuggestionType.DEADLINE,
            {'deadline': deadline.isoformat(), 'days': reply.suggested_days},
            reply,
        )
        return {
            'suggested_deadline': deadline,
            'suggested_days': reply.suggested_days,
            'confidence': reply.confidence,
            'reasoning': reply.reasoning,
            'is_new_team': bool(reply.is_new_team) or is_new_team,
            'disclaimer': None,
        }

    def suggest_priority(self, user, task_id) -> Dict[str, Any]:
        task, _ = authorize_task(user, task_id)
        prompt = build_priority_prompt(self._task_context(task))
        try:
            reply = self._ask(AISuggestionType.PRIORITY, prompt)
        except ExternalServiceError as e:
            logger.warning(f"AI priority suggestion unavailable for task {task.id}: {e}. Using default priority.")
            return {
                'suggested_priority': 'medium',
                'confidence': FALLBACK_CONFIDENCE,
                'reasoning': 'AI unavailable. Default priority.',
            }

        self._store(task, AISuggestionType.PRIORITY, {'priority': reply.suggested_priority}, reply)
        return {
            'suggested_priority': reply.suggested_priority,
            'confidence': reply.confidence,
            'reasoning': reply.reasoning,
        }

    def breakdown_task(self, user, task_id, max_subtasks: int = DEFAULT_MAX_SUBTASKS) -> Dict[str, Any]:
        try:
            max_subtasks = int(max_subtasks)
        except (TypeError, ValueError):
            raise BadRequest('maxSubtasks must be an integer')
        if not 1 <= max_subtasks <= MAX_SUBTASKS_LIMIT:
            raise BadRequest(f'maxSubtasks must be between 1 and {MAX_SUBTASKS_LIMIT}')

        task, _ = authorize_task(user, task_id)
        prompt = build_breakdown_prompt(self._task_context(task), max_subtasks)
        try:
            reply = self._ask(AISuggestionType.BREAKDOWN, prompt)
        except ExternalServiceError as e:
            logger.warning(f"AI breakdown unavailable for task {task.id}: {e}")
            return {
                'subtasks': [],
                'reasoning': 'AI unavailable. Please break down manually.',
                'confidence': 0,
            }

        reply.subtasks = sorted(reply.subtasks, key=lambda s: s.order)[:max_subtasks]
        subtasks = [s.model_dump(by_alias=True) for s in reply.subtasks]
        self._store(task, AISuggestionType.BREAKDOWN, subtasks, reply)
        return {
            'subtasks': subtasks,
            'reasoning': reply.reasoning,
            'confidence': reply.confidence,
        }

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @staticmethod
    def get_task_suggestions(user, task_id, kind: Optional[str] = None):
        task, _ = authorize_task(user, task_id)
        qs = task.ai_suggestions.all()
        if kind:
            qs = qs.filter(kind=kind)
        return task, list(qs)

    @staticmethod
    def get_ai_usage(user) -> Dict[str, Any]:
        """Статистика подсказок по задачам, созданным пользователем."""
        suggestions = AISuggestion.objects.filter(task__created_by=user)
        by_kind = {k: 0 for k in AISuggestionType.values}
        for row in suggestions.values('kind').annotate(count=Count('id')):
            by_kind[row['kind']] = row['count']
        avg_confidence = suggestions.aggregate(avg=Avg('confidence'))['avg']
        return {
            'total_suggestions': sum(by_kind.values()),
            'suggestion_types': by_kind,
            'average_confidence': round(avg_confidence, 2) if avg_confidence is not None else 0,
            'tasks_with_ai': suggestions.order_by().values('task').distinct().count(),
            'total_tasks': Task.objects.filter(created_by=user).count(),
        }
