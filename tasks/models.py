from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


# =============================================================================
# TEAMS
# =============================================================================

class TeamMemberRole(models.TextChoices):
    OWNER = 'owner', 'Владелец'
    ADMIN = 'admin', 'Администратор'
    CONTRIBUTOR = 'contributor', 'Участник'
    VIEWER = 'viewer', 'Наблюдатель'


class Team(models.Model):
    """Команда: группа пользователей, владеющая проектами."""
    name = models.CharField(max_length=100, verbose_name="Название")
    description = models.TextField(blank=True, verbose_name="Описание")
    created_by = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='created_teams',
        verbose_name="Создатель"
    )
    is_active = models.BooleanField(default=True, help_text="False: команда удалена (soft delete)")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Команда"
        verbose_name_plural = "Команды"
        indexes = [
            models.Index(fields=['is_active', 'name'], name='tasks_team_is_acti_3c9f1e_idx'),
        ]

    def __str__(self):
        return self.name

    def get_member_count(self):
        return self.members.count()

    def get_owner(self):
        member = self.members.filter(role=TeamMemberRole.OWNER).select_related('user').first()
        return member.user if member else None


class TeamMember(models.Model):
    """Участник команды с ролью."""
    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name='members'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='team_memberships'
    )
    role = models.CharField(
        max_length=20,
        choices=TeamMemberRole.choices,
        default=TeamMemberRole.CONTRIBUTOR
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['joined_at', 'id']
        unique_together = ['team', 'user']
        verbose_name = "Участник команды"
        verbose_name_plural = "Участники команд"
        indexes = [
            models.Index(fields=['user', 'team'], name='tasks_teamm_user_id_8d2a41_idx'),
            models.Index(fields=['team', 'role'], name='tasks_teamm_team_id_5b7c02_idx'),
        ]

    def __str__(self):
        return f"{self.user.email} в {self.team.name}"

    def can_manage_team(self):
        return self.role in [TeamMemberRole.OWNER, TeamMemberRole.ADMIN]


# =============================================================================
# PROJECTS
# =============================================================================

class ProjectStatus(models.TextChoices):
    PLANNING = 'planning', 'Planning'
    ACTIVE = 'active', 'Active'
    ON_HOLD = 'on_hold', 'On hold'
    COMPLETED = 'completed', 'Completed'
    ARCHIVED = 'archived', 'Archived'


class Priority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'
    URGENT = 'urgent', 'Urgent'


class Project(models.Model):
    """Проект: контейнер для задач, принадлежит ровно одной команде."""
    name = models.CharField(max_length=100, verbose_name="Название")
    description = models.TextField(blank=True, verbose_name="Описание")
    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name='projects',
        verbose_name="Команда"
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='created_projects',
        verbose_name="Создатель"
    )
    status = models.CharField(max_length=20, choices=ProjectStatus.choices, default=ProjectStatus.PLANNING)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Проект"
        verbose_name_plural = "Проекты"
        indexes = [
            models.Index(fields=['team', 'status'], name='tasks_proje_team_id_0e4b7d_idx'),
            models.Index(fields=['created_by', '-created_at'], name='tasks_proje_created_a71f3c_idx'),
        ]

    def __str__(self):
        return self.name

    def get_task_count(self):
        return self.tasks.count()

    def get_open_task_count(self):
        return self.tasks.exclude(status=TaskStatus.COMPLETED).count()


# =============================================================================
# TASKS
# =============================================================================

class TaskStatus(models.TextChoices):
    TODO = 'todo', 'To Do'
    IN_PROGRESS = 'in_progress', 'In Progress'
    IN_REVIEW = 'in_review', 'In Review'
    COMPLETED = 'completed', 'Completed'
    BLOCKED = 'blocked', 'Blocked'


class Task(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, max_length=2000)
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='tasks',
        verbose_name="Проект"
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='created_tasks'
    )
    assigned_to = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks'
    )
    status = models.CharField(max_length=20, choices=TaskStatus.choices, default=TaskStatus.TODO)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    deadline = models.DateTimeField(null=True, blank=True)
    estimated_hours = models.FloatField(null=True, blank=True)
    actual_hours = models.FloatField(null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)

    # Иерархия и зависимости внутри одного проекта
    parent_task = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='subtasks'
    )
    dependencies = models.ManyToManyField(
        'self',
        symmetrical=False,
        blank=True,
        related_name='dependents'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['project', 'status'], name='tasks_task_project_9a1c55_idx'),
            models.Index(fields=['assigned_to', 'status'], name='tasks_task_assigne_4f20b8_idx'),
            models.Index(fields=['deadline', 'status'], name='tasks_task_deadlin_c63e19_idx'),
            models.Index(fields=['created_by', '-created_at'], name='tasks_task_created_2d8e7a_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_overdue(self):
        """Просрочена: дедлайн в прошлом и задача не завершена. Не хранится."""
        if self.deadline and self.status != TaskStatus.COMPLETED:
            return self.deadline < timezone.now()
        return False


class TaskComment(models.Model):
    """Comments on tasks"""
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='comments')
    author = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    content = models.CharField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Comment on {self.task.title} by {self.author}"


class AISuggestionType(models.TextChoices):
    ASSIGNEE = 'assignee', 'Assignee'
    DEADLINE = 'deadline', 'Deadline'
    PRIORITY = 'priority', 'Priority'
    BREAKDOWN = 'breakdown', 'Breakdown'


class AISuggestion(models.Model):
    """Сохранённая подсказка ИИ по задаче (история)."""
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='ai_suggestions')
    kind = models.CharField(max_length=20, choices=AISuggestionType.choices)
    payload = models.JSONField(help_text="Предложенное значение: id пользователя, дата, приоритет или список подзадач")
    reasoning = models.TextField(blank=True)
    confidence = models.FloatField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['task', 'kind'], name='tasks_aisug_task_id_7e3d90_idx'),
        ]

    def __str__(self):
        return f"{self.kind} suggestion for {self.task_id}"


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class NotificationType(models.TextChoices):
    TASK_ASSIGNED = 'task_assigned', 'Задача назначена'
    TASK_UPDATED = 'task_updated', 'Задача обновлена'
    TASK_COMPLETED = 'task_completed', 'Задача завершена'
    DEADLINE_APPROACHING = 'deadline_approaching', 'Приближается дедлайн'
    COMMENT_ADDED = 'comment_added', 'Новый комментарий'
    TEAM_INVITE = 'team_invite', 'Приглашение в команду'
    AI_SUGGESTION = 'ai_suggestion', 'Подсказка ИИ'


class Notification(models.Model):
    """Уведомление пользователю о событиях по задачам и командам."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    notification_type = models.CharField(max_length=30, choices=NotificationType.choices)
    title = models.CharField(max_length=100)
    message = models.CharField(max_length=500)

    task = models.ForeignKey(Task, on_delete=models.CASCADE, null=True, blank=True, related_name='notifications')
    project = models.ForeignKey(Project, on_delete=models.CASCADE, null=True, blank=True, related_name='notifications')
    team = models.ForeignKey(Team, on_delete=models.CASCADE, null=True, blank=True, related_name='notifications')

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'is_read', '-created_at'], name='tasks_notif_user_id_b51a2c_idx'),
        ]

    def __str__(self):
        return f"{self.notification_type} - {self.title}"

    def mark_read(self):
        """read_at выставляется один раз, при первом прочтении."""
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=['is_read', 'read_at'])
        return True
