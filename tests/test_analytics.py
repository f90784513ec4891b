"""
Тесты аналитики (tasks.analytics).
"""
from datetime import timedelta

import pytest
from django.utils import timezone

from tasks import analytics
from tasks.models import ProjectStatus, Task, TaskStatus


def _backdate(task, created_days_ago, updated_days_ago):
    now = timezone.now()
    Task.objects.filter(pk=task.pk).update(
        created_at=now - timedelta(days=created_days_ago),
        updated_at=now - timedelta(days=updated_days_ago),
    )


@pytest.mark.django_db
class TestTeamWorkload:

    def test_counts_and_sorting(self, full_team, make_task, contributor, admin_member):
        make_task("c1", assigned_to=contributor, status=TaskStatus.COMPLETED, estimated_hours=2, actual_hours=3)
        make_task("c2", assigned_to=contributor, status=TaskStatus.IN_PROGRESS, estimated_hours=4)
        make_task("c3", assigned_to=contributor, deadline=timezone.now() - timedelta(days=1))
        make_task("a1", assigned_to=admin_member)
        make_task("unassigned")

        workload = analytics.team_workload(full_team.id)

        assert [row["user_id"] for row in workload] == [contributor.id, admin_member.id]
        top = workload[0]
        assert top["name"] == contributor.name
        assert top["total_tasks"] == 3
        assert top["completed_tasks"] == 1
        assert top["in_progress_tasks"] == 1
        assert top["todo_tasks"] == 1
        assert top["overdue_tasks"] == 1
        assert top["active_tasks"] == 2
        assert top["total_estimated_hours"] == 6
        assert top["total_actual_hours"] == 3
        assert top["completion_rate"] == 33.3

    def test_empty_team(self, full_team):
        assert analytics.team_workload(full_team.id) == []


@pytest.mark.django_db
class TestProjectStats:

    def test_facets_and_hours(self, project, make_task, contributor):
        make_task("done", status=TaskStatus.COMPLETED, priority="high", estimated_hours=4, actual_hours=6,
                  assigned_to=contributor)
        make_task("open", priority="urgent", estimated_hours=2, deadline=timezone.now() - timedelta(hours=2))

        stats = analytics.project_stats(project.id)

        assert stats["by_status"][TaskStatus.COMPLETED] == 1
        assert stats["by_status"][TaskStatus.TODO] == 1
        assert stats["by_status"][TaskStatus.BLOCKED] == 0
        assert stats["by_priority"]["high"] == 1
        assert stats["by_priority"]["urgent"] == 1
        assert stats["by_priority"]["low"] == 0
        overall = stats["overall"]
        assert overall["total_tasks"] == 2
        assert overall["overdue_tasks"] == 1
        assert overall["completion_rate"] == 50.0
        assert overall["total_estimated_hours"] == 6
        assert overall["hours_variance"] == 0
        assert stats["assignees"][0]["user_id"] == contributor.id

    def test_empty_project(self, project):
        stats = analytics.project_stats(project.id)
        assert stats["overall"]["total_tasks"] == 0
        assert stats["overall"]["completion_rate"] == 0
        assert stats["assignees"] == []


@pytest.mark.django_db
class TestMemberPerformanceHistory:

    def test_zeroed_history(self, full_team, contributor):
        assert analytics.member_performance_history(contributor.id, full_team.id) == {
            "tasks_completed": 0,
            "avg_completion_time": 0,
            "accuracy": 0,
            "common_tags": [],
            "preferred_priority": None,
        }

    def test_history_metrics(self, full_team, make_task, contributor):
        t1 = make_task("t1", assigned_to=contributor, status=TaskStatus.COMPLETED, priority="high",
                       estimated_hours=10, actual_hours=8, tags=["api", "python"])
        t2 = make_task("t2", assigned_to=contributor, status=TaskStatus.COMPLETED, priority="high",
                       estimated_hours=4, actual_hours=12, tags=["api"])
        t3 = make_task("t3", assigned_to=contributor, status=TaskStatus.COMPLETED, priority="low",
                       tags=["docs"])
        make_task("open", assigned_to=contributor, tags=["ignored"])
        _backdate(t1, 3, 1)
        _backdate(t2, 5, 1)
        _backdate(t3, 2, 1)

        history = analytics.member_performance_history(contributor.id, full_team.id)

        assert history["tasks_completed"] == 3
        # (2 + 4 + 1) / 3 дня
        assert history["avg_completion_time"] == 2.3
        # t1: 1 - 2/10 = 0.8; t2: 1 - 8/4 < 0 -> 0; t3 без оценок не учитывается
        assert history["accuracy"] == 40.0
        assert history["common_tags"][0] == "api"
        assert "ignored" not in history["common_tags"]
        assert history["preferred_priority"] == "high"


@pytest.mark.django_db
class TestDashboardAndTrends:

    def test_user_dashboard(self, project, make_task, contributor):
        now = timezone.now()
        for i in range(7):
            make_task(f"upcoming {i}", assigned_to=contributor, deadline=now + timedelta(days=i + 1))
        make_task("done", assigned_to=contributor, status=TaskStatus.COMPLETED, deadline=now + timedelta(hours=1))
        make_task("mine", created_by=contributor)
        project.status = ProjectStatus.ACTIVE
        project.save()

        data = analytics.user_dashboard(contributor.id)

        assert data["tasks"]["total"] == 8
        assert data["tasks"]["completed"] == 1
        assert [t["title"] for t in data["upcoming_deadlines"]] == [f"upcoming {i}" for i in range(5)]
        assert data["created_tasks"] == 1
        assert data["active_projects"] == 1
        assert data["teams"] == 1

    def test_completion_trends(self, project, make_task):
        a = make_task("a", status=TaskStatus.COMPLETED)
        b = make_task("b", status=TaskStatus.COMPLETED)
        c = make_task("c", status=TaskStatus.COMPLETED)
        old = make_task("old", status=TaskStatus.COMPLETED)
        make_task("open")
        _backdate(a, 10, 2)
        _backdate(b, 10, 2)
        _backdate(c, 10, 5)
        _backdate(old, 60, 45)

        trends = analytics.task_completion_trends(project.id)

        assert [row["count"] for row in trends] == [1, 2]
        assert trends[0]["date"] < trends[1]["date"]
