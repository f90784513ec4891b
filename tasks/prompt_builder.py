"""
Шаблоны промптов для подсказок ИИ по задачам.

Для исполнителя и дедлайна есть отдельный шаблон "новой команды" (нет истории).
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TaskContext:
    task_id: int
    title: str
    description: str = ''
    tags: List[str] = field(default_factory=list)
    estimated_hours: Optional[float] = None
    priority: Optional[str] = None
    project_name: str = 'Unknown'
    team_name: str = 'Unknown'


@dataclass
class MemberContext:
    user_id: int
    name: str
    email: str = ''
    tasks_completed: int = 0
    avg_completion_time: float = 0
    accuracy: float = 0
    common_tags: List[str] = field(default_factory=list)
    current_workload: int = 0
    preferred_priority: Optional[str] = None


def _tags(tags):
    return ', '.join(tags) if tags else 'None'


def build_assignee_prompt(task: TaskContext, members: List[MemberContext], is_new_team: bool) -> str:
    if is_new_team or all(m.tasks_completed == 0 for m in members):
        members_text = ''.join(
            f"\n{i}. {m.name} (ID: {m.user_id})\n   - Current Workload: {m.current_workload} active tasks\n"
            for i, m in enumerate(members, 1)
        )
        return f"""
You are a task assignment expert for a NEW TEAM with no history.

TASK DETAILS:
- Title: {task.title}
- Description: {task.description or 'No description'}
- Tags: {_tags(task.tags)}
- Estimated Hours: {task.estimated_hours or 'Unknown'}
- Priority: {task.priority or 'Not set'}

TEAM MEMBERS:
{members_text}
Since this is a new team with no task history, suggest the team member with the LOWEST current workload for fair distribution.

Return ONLY valid JSON (no markdown, no extra text):
{{
  "suggestedUserId": "user_id_here",
  "confidence": 0.35,
  "reasoning": "Fair distribution: [Name] has the fewest active tasks ([number] tasks). Note: This is a new team - suggestions will improve as tasks are completed.",
  "isNewTeam": true,
  "disclaimer": "New team: complete tasks to enable smarter AI suggestions based on performance history."
}}
"""

    members_text = ''.join(
        f"""
{i}. {m.name} (ID: {m.user_id})
   - Tasks Completed: {m.tasks_completed}
   - Average Completion Time: {m.avg_completion_time:.1f} days
   - Accuracy: {m.accuracy:.1f}% (estimated vs actual hours)
   - Expertise Tags: {', '.join(m.common_tags) or 'None yet'}
   - Current Workload: {m.current_workload} active tasks
   - Preferred Priority: {m.preferred_priority or 'Not determined'}
"""
        for i, m in enumerate(members, 1)
    )
    return f"""
You are an expert task assignment AI for project management.

TASK DETAILS:
- Title: {task.title}
- Description: {task.description or 'No description provided'}
- Tags: {_tags(task.tags)}
- Estimated Hours: {task.estimated_hours or 'Not specified'}
- Priority: {task.priority or 'medium'}
- Project: {task.project_name}
- Team: {task.team_name}

TEAM MEMBERS ANALYSIS:
{members_text}
ANALYSIS CRITERIA:
1. Match task tags with member expertise
2. Consider current workload (avoid overloading)
3. Factor in completion speed
4. Consider accuracy for time estimation
5. Balance team distribution

Return ONLY valid JSON (no markdown, no extra text):
{{
  "suggestedUserId": "the_user_id_of_best_match",
  "confidence": 0.85,
  "reasoning": "Brief explanation of why this person is the best match (mention relevant expertise, workload, past performance)"
}}
"""


def build_deadline_prompt(task: TaskContext, history: Optional[MemberContext] = None) -> str:
    if history is None or history.tasks_completed == 0:
        return f"""
You are a project management expert.

TASK:
- Title: {task.title}
- Description: {task.description or 'No description'}
- Estimated Hours: {task.estimated_hours or 'Not specified'}
- Priority: {task.priority or 'medium'}

Since there's no team history, suggest a reasonable deadline based on:
- Task complexity (analyze title and description)
- Estimated hours if provided
- Industry standards
- Priority level

Return ONLY valid JSON (no markdown):
{{
  "suggestedDays": 3,
  "confidence": 0.5,
  "reasoning": "Brief explanation of the deadline estimate",
  "isNewTeam": true
}}
"""

    return f"""
You are a deadline estimation expert.

TASK:
- Title: {task.title}
- Description: {task.description or 'No description'}
- Estimated Hours: {task.estimated_hours or 'Not specified'}
- Priority: {task.priority or 'medium'}

ASSIGNEE HISTORY:
- Name: {history.name}
- Average Completion Time: {history.avg_completion_time:.1f} days
- Accuracy: {history.accuracy:.1f}%
- Current Workload: {history.current_workload} tasks

Based on the assignee's history and current workload, suggest an appropriate deadline.

Return ONLY valid JSON (no markdown):
{{
  "suggestedDays": 3,
  "confidence": 0.85,
  "reasoning": "Brief explanation based on historical data"
}}
"""


def build_priority_prompt(task: TaskContext) -> str:
    return f"""
You are a task priority assessment expert.

TASK:
- Title: {task.title}
- Description: {task.description or 'No description'}
- Tags: {_tags(task.tags)}
- Project: {task.project_name}

Analyze the task and suggest priority based on:
- Urgency keywords (urgent, asap, critical, blocking, etc.)
- Impact on project
- Dependencies
- Business value

Priority levels: low, medium, high, urgent

Return ONLY valid JSON (no markdown):
{{
  "suggestedPriority": "high",
  "confidence": 0.8,
  "reasoning": "Brief explanation of why this priority level"
}}
"""


def build_breakdown_prompt(task: TaskContext, max_subtasks: int = 5) -> str:
    return f"""
You are a task breakdown expert for software development.

TASK TO BREAK DOWN:
- Title: {task.title}
- Description: {task.description or 'No additional details'}
- Estimated Hours: {task.estimated_hours or 'Not specified'}
- Tags: {_tags(task.tags)}

Break this task into {max_subtasks} or fewer subtasks that are:
1. Specific and actionable
2. Can be completed independently
3. Follow logical order
4. Cover all aspects of the main task

IMPORTANT: Return ONLY valid JSON. No markdown, no code blocks, no comments, no extra text.
Use double quotes for all strings. No trailing commas.

Expected JSON format:
{{
  "subtasks": [
    {{
      "title": "Specific subtask title",
      "description": "Brief description",
      "estimatedHours": 2,
      "order": 1
    }}
  ],
  "reasoning": "Brief explanation of the breakdown approach",
  "confidence": 0.9
}}
"""
