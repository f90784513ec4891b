from django.urls import path
from . import views
from . import project_views
from . import team_views
from . import ai_views
from . import analytics_views

app_name = 'tasks'

urlpatterns = [
    # ==========================================================================
    # TEAMS
    # ==========================================================================
    path('teams/', team_views.teams, name='teams'),
    path('teams/<int:pk>/', team_views.team_detail, name='team_detail'),
    path('teams/<int:pk>/members/', team_views.team_member_add, name='team_member_add'),
    path('teams/<int:pk>/members/<int:user_id>/', team_views.team_member, name='team_member'),
    path('teams/<int:team_id>/projects/', project_views.team_projects, name='team_projects'),

    # ==========================================================================
    # PROJECTS
    # ==========================================================================
    path('projects/', project_views.projects, name='projects'),
    path('projects/<int:pk>/', project_views.project_detail, name='project_detail'),
    path('projects/<int:pk>/status/', project_views.project_status, name='project_status'),

    # ==========================================================================
    # TASKS
    # ==========================================================================
    path('tasks/', views.tasks, name='tasks'),
    path('tasks/my/assigned/', views.my_assigned_tasks, name='my_assigned_tasks'),
    path('tasks/my/created/', views.my_created_tasks, name='my_created_tasks'),
    path('tasks/<int:pk>/', views.task_detail, name='task_detail'),
    path('tasks/<int:pk>/comments/', views.task_comment_add, name='task_comment_add'),
    path('tasks/<int:pk>/dependencies/', views.task_dependency_add, name='task_dependency_add'),
    path(
        'tasks/<int:pk>/dependencies/<int:dependency_id>/',
        views.task_dependency_remove,
        name='task_dependency_remove',
    ),

    # ==========================================================================
    # AI
    # ==========================================================================
    path('ai/suggest-assignee/', ai_views.suggest_assignee, name='ai_suggest_assignee'),
    path('ai/suggest-deadline/', ai_views.suggest_deadline, name='ai_suggest_deadline'),
    path('ai/suggest-priority/', ai_views.suggest_priority, name='ai_suggest_priority'),
    path('ai/breakdown-task/', ai_views.breakdown_task, name='ai_breakdown_task'),
    path('ai/suggestions/<int:task_id>/', ai_views.task_suggestions, name='ai_task_suggestions'),
    path('ai/usage/', ai_views.ai_usage, name='ai_usage'),

    # ==========================================================================
    # ANALYTICS
    # ==========================================================================
    path('analytics/dashboard/', analytics_views.dashboard, name='analytics_dashboard'),
    path('analytics/team/<int:team_id>/workload/', analytics_views.team_workload, name='analytics_team_workload'),
    path(
        'analytics/team/<int:team_id>/member/<int:user_id>/performance/',
        analytics_views.member_performance,
        name='analytics_member_performance',
    ),
    path('analytics/project/<int:project_id>/stats/', analytics_views.project_stats, name='analytics_project_stats'),
    path('analytics/project/<int:project_id>/trends/', analytics_views.project_trends, name='analytics_project_trends'),

    # ==========================================================================
    # NOTIFICATIONS
    # ==========================================================================
    path('notifications/', views.notifications_list, name='notifications_list'),
    path('notifications/read-all/', views.notifications_mark_all_read, name='notifications_mark_all_read'),
    path('notifications/<int:pk>/read/', views.notification_mark_read, name='notification_mark_read'),
]
