"""Tests for dashboard_service.

Tests cover:
- dashboard aggregation (stats, recent projects, upcoming tasks, members, requests)
- task listing filters and ordering
- recent requests limit clamping
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from services.dashboard_service import (
    TaskFilters,
    get_dashboard_data,
    get_recent_requests,
    get_tasks_by_user,
)
from services.errors import ValidationError
from tests.factories import (
    OrganizationFactory,
    ProjectFactory,
    RequestFactory,
    TaskFactory,
    UserFactory,
    create_async,
    days_ago,
)


def _in_days(days: float) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


@pytest.mark.unit
class TestDashboardValidation:
    async def test_blank_user_id(self):
        with pytest.raises(ValidationError) as exc_info:
            await get_dashboard_data(AsyncMock(), "")
        assert exc_info.value.message == "User ID is required"

    async def test_invalid_task_status_skips_query(self):
        with patch(
            "services.dashboard_service.TaskRepository", autospec=True
        ) as mock_repo_class:
            with pytest.raises(ValidationError) as exc_info:
                await get_tasks_by_user(AsyncMock(), "u1", TaskFilters(status="DONE"))

            assert "TODO, IN_PROGRESS, COMPLETED, CANCELLED" in exc_info.value.message
            mock_repo_class.assert_not_called()

    async def test_invalid_priority(self):
        with pytest.raises(ValidationError) as exc_info:
            await get_tasks_by_user(AsyncMock(), "u1", TaskFilters(priority="ASAP"))
        assert "URGENT" in exc_info.value.message

    async def test_non_integer_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            await get_recent_requests(AsyncMock(), "org-1", "lots")
        assert exc_info.value.message == "Limit must be an integer."


@pytest.mark.integration
class TestDashboardData:
    async def test_unknown_user_is_404(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await get_dashboard_data(db_session, "missing-user")
        assert exc_info.value.code == 404

    async def test_aggregates_user_activity(self, db_session):
        org = await create_async(OrganizationFactory, db_session)
        user = await create_async(UserFactory, db_session, organization_id=org.id)
        teammate = await create_async(
            UserFactory, db_session, organization_id=org.id, name="Teammate"
        )
        project = await create_async(
            ProjectFactory, db_session, project_manager_id=user.id, status="ACTIVE"
        )
        await create_async(
            ProjectFactory, db_session, project_manager_id=user.id, status="COMPLETED"
        )
        await create_async(
            TaskFactory,
            db_session,
            assigned_to_id=user.id,
            project_id=project.id,
            status="TODO",
            due_date=days_ago(2),
        )
        await create_async(
            TaskFactory,
            db_session,
            assigned_to_id=user.id,
            status="IN_PROGRESS",
            due_date=_in_days(3),
        )
        await create_async(
            TaskFactory, db_session, assigned_to_id=user.id, status="COMPLETED"
        )
        await create_async(
            RequestFactory, db_session, user_id=teammate.id, organization_id=org.id
        )
        await create_async(
            RequestFactory,
            db_session,
            user_id=teammate.id,
            organization_id=org.id,
            status="approved",
        )

        result = await get_dashboard_data(db_session, user.id)
        data = result.data

        assert data.user.id == user.id
        assert data.stats.total_projects == 2
        assert data.stats.projects_by_status == {"ACTIVE": 1, "COMPLETED": 1}
        assert data.stats.total_tasks == 3
        assert data.stats.pending_tasks == 2
        assert data.stats.completed_tasks == 1
        assert data.stats.overdue_tasks == 1
        assert data.stats.pending_requests == 1
        assert len(data.projects) == 2
        # Only open tasks, overdue one first
        assert [t.status for t in data.tasks] == ["TODO", "IN_PROGRESS"]
        assert data.tasks[0].project.id == project.id
        assert [u.name for u in data.users] == ["Teammate"]
        assert len(data.requests) == 2
        assert data.requests[0].user.id == teammate.id

    async def test_user_without_organization(self, db_session):
        user = await create_async(UserFactory, db_session)

        result = await get_dashboard_data(db_session, user.id)

        assert result.data.users == []
        assert result.data.requests == []
        assert result.data.stats.total_projects == 0
        assert result.data.stats.pending_requests == 0

    async def test_recent_projects_capped_at_five(self, db_session):
        user = await create_async(UserFactory, db_session)
        for age in range(7):
            await create_async(
                ProjectFactory,
                db_session,
                project_manager_id=user.id,
                created_at=days_ago(age),
            )

        result = await get_dashboard_data(db_session, user.id)

        assert len(result.data.projects) == 5
        assert result.data.stats.total_projects == 7


@pytest.mark.integration
class TestTasksByUser:
    async def test_orders_by_due_date_with_undated_last(self, db_session):
        user = await create_async(UserFactory, db_session)
        await create_async(
            TaskFactory, db_session, assigned_to_id=user.id, title="Undated", due_date=None
        )
        await create_async(
            TaskFactory, db_session, assigned_to_id=user.id, title="Later", due_date=_in_days(5)
        )
        await create_async(
            TaskFactory, db_session, assigned_to_id=user.id, title="Sooner", due_date=_in_days(1)
        )

        result = await get_tasks_by_user(db_session, user.id)

        assert [t.title for t in result.data] == ["Sooner", "Later", "Undated"]
        assert result.total == 3

    async def test_filters_status_and_priority(self, db_session):
        user = await create_async(UserFactory, db_session)
        await create_async(
            TaskFactory, db_session, assigned_to_id=user.id, status="TODO", priority="HIGH"
        )
        await create_async(
            TaskFactory, db_session, assigned_to_id=user.id, status="TODO", priority="LOW"
        )
        await create_async(
            TaskFactory,
            db_session,
            assigned_to_id=user.id,
            status="COMPLETED",
            priority="HIGH",
        )

        result = await get_tasks_by_user(
            db_session, user.id, TaskFilters(status="TODO", priority="HIGH")
        )

        assert result.total == 1
        assert result.data[0].priority == "HIGH"
        assert result.data[0].status == "TODO"


@pytest.mark.integration
class TestRecentRequests:
    async def test_unknown_organization_is_404(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await get_recent_requests(db_session, "no-such-org")
        assert exc_info.value.code == 404

    @pytest.mark.parametrize("limit,expected", [(2, 2), (0, 1), (-4, 1), ("3", 3)])
    async def test_limit_is_clamped(self, db_session, limit, expected):
        org = await create_async(OrganizationFactory, db_session)
        user = await create_async(UserFactory, db_session, organization_id=org.id)
        for age in range(4):
            await create_async(
                RequestFactory,
                db_session,
                user_id=user.id,
                organization_id=org.id,
                created_at=days_ago(age),
            )

        result = await get_recent_requests(db_session, org.id, limit)

        assert len(result.data) == expected

    async def test_newest_first(self, db_session):
        org = await create_async(OrganizationFactory, db_session)
        user = await create_async(UserFactory, db_session, organization_id=org.id)
        await create_async(
            RequestFactory,
            db_session,
            user_id=user.id,
            organization_id=org.id,
            title="Old",
            created_at=days_ago(5),
        )
        await create_async(
            RequestFactory,
            db_session,
            user_id=user.id,
            organization_id=org.id,
            title="New",
            created_at=days_ago(1),
        )

        result = await get_recent_requests(db_session, org.id)

        assert [r.title for r in result.data] == ["New", "Old"]
