from django.apps import AppConfig


class TasksConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tasks'
    verbose_name = 'Tasks'

    ai_config = None

    def ready(self):
        from app.core.model_config import AIConfig

        self.ai_config = AIConfig.from_settings()
