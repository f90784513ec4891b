"""
Разбор и валидация JSON-ответов модели для подсказок по задачам.
"""
import json
import math
import re
from typing import List, Literal, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.core.exceptions import InvalidAIResponse

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*")


def _extract_balanced(text: str) -> Optional[str]:
    """Первый сбалансированный фрагмент {...} или [...], с учётом строковых литералов."""
    start = None
    stack = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if start is None:
            if ch in "{[":
                start = i
                stack.append("}" if ch == "{" else "]")
            continue
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]":
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return text[start:i + 1]
    return None


def _strip_comments(text: str) -> str:
    """Удаляет // и /* */ комментарии вне строк."""
    out = []
    i = 0
    in_string = False
    escaped = False
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _strip_trailing_commas(text: str) -> str:
    """Удаляет запятые перед } и ] вне строк."""
    out = []
    n = len(text)
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            out.append(ch)
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] in "}]":
                continue
        out.append(ch)
    return "".join(out)


def clean_json_text(raw: str) -> str:
    text = _FENCE_RE.sub("", raw or "").replace("```", "").strip()
    text = _extract_balanced(text) or text
    text = _strip_comments(text)
    return _strip_trailing_commas(text).strip()


def parse_json_reply(raw: str):
    """Чистит ответ модели и разбирает JSON. Ошибка разбора → InvalidAIResponse."""
    cleaned = clean_json_text(raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse AI JSON reply: {e}; cleaned: {cleaned[:500]}")
        raise InvalidAIResponse("AI returned malformed JSON")


# =============================================================================
# Ожидаемые формы ответов
# =============================================================================

class _Reply(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    confidence: float = Field(ge=0, le=1)
    reasoning: str = Field(min_length=1)


class AssigneeReply(_Reply):
    kind: Literal["assignee"] = "assignee"
    suggested_user_id: str = Field(alias="suggestedUserId", min_length=1)
    is_new_team: Optional[bool] = Field(default=None, alias="isNewTeam")
    disclaimer: Optional[str] = None

    @field_validator("suggested_user_id", mode="before")
    @classmethod
    def _id_to_str(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class DeadlineReply(_Reply):
    kind: Literal["deadline"] = "deadline"
    suggested_days: int = Field(alias="suggestedDays", ge=0)
    is_new_team: Optional[bool] = Field(default=None, alias="isNewTeam")

    @field_validator("suggested_days", mode="before")
    @classmethod
    def _whole_days(cls, value):
        if isinstance(value, float):
            return math.ceil(value)
        return value


class PriorityReply(_Reply):
    kind: Literal["priority"] = "priority"
    suggested_priority: Literal["low", "medium", "high", "urgent"] = Field(alias="suggestedPriority")

    @field_validator("suggested_priority", mode="before")
    @classmethod
    def _lower(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class SubtaskItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)
    description: str = ""
    estimated_hours: Optional[float] = Field(default=None, alias="estimatedHours", ge=0)
    order: int


class BreakdownReply(_Reply):
    kind: Literal["breakdown"] = "breakdown"
    subtasks: List[SubtaskItem] = Field(default_factory=list)


AIReply = Union[AssigneeReply, DeadlineReply, PriorityReply, BreakdownReply]

REPLY_MODELS = {
    "assignee": AssigneeReply,
    "deadline": DeadlineReply,
    "priority": PriorityReply,
    "breakdown": BreakdownReply,
}


def validate_reply(kind: str, raw: str) -> AIReply:
    """Разбор + валидация ответа под конкретный тип подсказки."""
    data = parse_json_reply(raw)
    if not isinstance(data, dict):
        raise InvalidAIResponse("AI reply must be a JSON object")
    data.pop("kind", None)
    try:
        return REPLY_MODELS[kind].model_validate(data)
    except ValidationError as e:
        logger.warning(f"AI {kind} reply failed validation: {e.errors()[:3]}")
        raise InvalidAIResponse(f"AI returned an invalid {kind} suggestion")
