"""Tests for project_service.

Tests cover:
- input validation happening before any repository call
- ownership checks and the update field whitelist
- end/start date ordering on update (and its absence on create)
- both dates being required on create
- duplicate names surfacing as 409
- listing with status/name filters and pagination metadata
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from models import Project
from repositories.project_repository import ProjectOwnership
from services.errors import ValidationError
from services.project_service import (
    DUPLICATE_NAME_MESSAGE,
    ProjectChanges,
    ProjectFilters,
    create_project,
    get_project_details,
    get_projects_by_user,
    update_project,
)
from tests.factories import (
    KpiFactory,
    LocationFactory,
    ProjectFactory,
    TaskFactory,
    UserFactory,
    create_async,
    days_ago,
)

OWNER_ID = "owner-1"
PROJECT_ID = "project-1"


def _ownership(start=None, end=None) -> ProjectOwnership:
    return ProjectOwnership(PROJECT_ID, OWNER_ID, start, end)


@pytest.fixture
def mock_repo():
    with patch(
        "services.project_service.ProjectRepository", autospec=True
    ) as mock_repo_class:
        repo = mock_repo_class.return_value
        repo.get_ownership = AsyncMock(return_value=_ownership())
        repo.exists = AsyncMock(return_value=True)
        repo.update_fields = AsyncMock()
        repo.create = AsyncMock()
        repo.find_by_manager = AsyncMock(return_value=([], 0))
        yield repo


@pytest.mark.unit
class TestProjectChanges:
    def test_camel_case_keys_are_mapped(self):
        changes = ProjectChanges.from_payload(
            {"geographicalArea": "North", "riskLevel": "LOW"}
        )
        assert changes.provided() == {"geographical_area": "North", "risk_level": "LOW"}

    def test_snake_case_keys_are_accepted(self):
        changes = ProjectChanges.from_payload({"government_entity": "Ministry"})
        assert changes.provided() == {"government_entity": "Ministry"}

    def test_camel_case_wins_over_snake_case(self):
        changes = ProjectChanges.from_payload({"startDate": "a", "start_date": "b"})
        assert changes.start_date == "a"

    def test_unknown_keys_and_nulls_are_dropped(self):
        changes = ProjectChanges.from_payload(
            {"id": "x", "projectManagerId": "y", "name": None, "budget": 0}
        )
        assert changes.provided() == {"budget": 0}


@pytest.mark.unit
class TestProjectValidationOrder:
    """Invalid input never reaches the repository."""

    async def test_empty_user_id_skips_query(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await get_projects_by_user(AsyncMock(), "  ")

        assert exc_info.value.message == "User ID is required"
        mock_repo.find_by_manager.assert_not_awaited()

    async def test_unknown_status_lists_allowed_values(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await get_projects_by_user(
                AsyncMock(), OWNER_ID, ProjectFilters(status="BOGUS")
            )

        assert exc_info.value.code == 400
        assert "DRAFT, ACTIVE, COMPLETED, CANCELLED, ON_HOLD" in exc_info.value.message
        mock_repo.find_by_manager.assert_not_awaited()

    async def test_non_integer_page_skips_query(self, mock_repo):
        with pytest.raises(ValidationError):
            await get_projects_by_user(AsyncMock(), OWNER_ID, ProjectFilters(page="two"))

        mock_repo.find_by_manager.assert_not_awaited()

    async def test_name_is_trimmed_and_page_clamped(self, mock_repo):
        result = await get_projects_by_user(
            AsyncMock(),
            OWNER_ID,
            ProjectFilters(name="  bridge ", page="0", page_size="500"),
        )

        mock_repo.find_by_manager.assert_awaited_once_with(
            OWNER_ID, status=None, search="bridge", offset=0, limit=50
        )
        assert result.page == 1
        assert result.per_page == 50

    async def test_update_rejects_non_object_payload(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(AsyncMock(), PROJECT_ID, ["name"], OWNER_ID)

        assert exc_info.value.message == "Project data must be an object"
        mock_repo.get_ownership.assert_not_awaited()

    async def test_create_with_unparsable_date_skips_insert(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await create_project(
                AsyncMock(), {"name": "P", "startDate": "soon"}, OWNER_ID
            )

        assert exc_info.value.message == "Invalid start date format"
        mock_repo.create.assert_not_awaited()

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"name": "P"}, "Invalid start date format"),
            ({"name": "P", "startDate": "2024-01-01"}, "Invalid end date format"),
            ({"name": "P", "endDate": "2024-01-01"}, "Invalid start date format"),
        ],
    )
    async def test_create_without_dates_skips_insert(self, mock_repo, payload, message):
        with pytest.raises(ValidationError) as exc_info:
            await create_project(AsyncMock(), payload, OWNER_ID)

        assert exc_info.value.code == 400
        assert exc_info.value.message == message
        mock_repo.create.assert_not_awaited()


@pytest.mark.unit
class TestUpdateProjectRules:
    async def test_missing_project_is_404(self, mock_repo):
        mock_repo.get_ownership.return_value = None

        with pytest.raises(ValidationError) as exc_info:
            await update_project(AsyncMock(), PROJECT_ID, {"name": "x"}, OWNER_ID)

        assert exc_info.value.code == 404

    async def test_other_user_is_forbidden(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(AsyncMock(), PROJECT_ID, {"name": "x"}, "intruder")

        assert exc_info.value.code == 403
        assert exc_info.value.message == "You are not authorized to update this project"
        mock_repo.update_fields.assert_not_awaited()

    async def test_blank_caller_id_is_rejected(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(AsyncMock(), PROJECT_ID, {"name": "x"}, "   ")

        assert exc_info.value.message == "Invalid user ID"
        mock_repo.update_fields.assert_not_awaited()

    async def test_no_whitelisted_fields(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(
                AsyncMock(), PROJECT_ID, {"projectManagerId": "me"}, OWNER_ID
            )

        assert exc_info.value.message == "No valid fields to update"

    async def test_own_parent_is_rejected_before_lookup(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(
                AsyncMock(), PROJECT_ID, {"parentProjectId": PROJECT_ID}, OWNER_ID
            )

        assert exc_info.value.message == "A project cannot be its own parent"
        mock_repo.exists.assert_not_awaited()

    async def test_unknown_parent_is_404(self, mock_repo):
        mock_repo.exists.return_value = False

        with pytest.raises(ValidationError) as exc_info:
            await update_project(
                AsyncMock(), PROJECT_ID, {"parentProjectId": "other"}, OWNER_ID
            )

        assert exc_info.value.code == 404

    @pytest.mark.parametrize(
        "payload",
        [
            {"startDate": "2024-06-01", "endDate": "2024-05-01"},
            {"startDate": "2024-06-01", "endDate": "2024-06-01"},
        ],
    )
    async def test_end_must_follow_start(self, mock_repo, payload):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(AsyncMock(), PROJECT_ID, payload, OWNER_ID)

        assert exc_info.value.message == "End date must be after start date"
        mock_repo.update_fields.assert_not_awaited()

    async def test_single_date_is_checked_against_stored_value(self, mock_repo):
        """Only endDate supplied; compared with the stored start date."""
        mock_repo.get_ownership.return_value = _ownership(
            start=datetime(2024, 6, 1, tzinfo=UTC)
        )

        with pytest.raises(ValidationError):
            await update_project(
                AsyncMock(), PROJECT_ID, {"endDate": "2024-01-01"}, OWNER_ID
            )

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"budget": -1}, "Budget must be a non-negative number"),
            ({"progress": 101}, "Progress must be a number between 0 and 100"),
            ({"progress": "lots"}, "Progress must be a number between 0 and 100"),
            ({"name": "   "}, "Project name must be a non-empty string"),
        ],
    )
    async def test_field_validation(self, mock_repo, payload, message):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(AsyncMock(), PROJECT_ID, payload, OWNER_ID)

        assert exc_info.value.message == message

    async def test_update_status_uses_update_vocabulary(self, mock_repo):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(AsyncMock(), PROJECT_ID, {"status": "DRAFT"}, OWNER_ID)

        assert "PLANNED" in exc_info.value.message


@pytest.mark.integration
class TestProjectServiceDatabase:
    async def test_update_returns_project_with_manager(self, db_session):
        manager = await create_async(UserFactory, db_session)
        project = await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id
        )

        result = await update_project(
            db_session,
            project.id,
            {"name": "Renamed", "budget": "2500.5", "riskLevel": "HIGH", "progress": 40},
            user_id=manager.id,
        )

        assert result.message == "Project updated successfully"
        assert result.data.name == "Renamed"
        assert result.data.budget == 2500.5
        assert result.data.risk_level == "HIGH"
        assert result.data.progress == 40
        assert result.data.project_manager.email == manager.email

    async def test_update_without_caller_skips_ownership(self, db_session):
        manager = await create_async(UserFactory, db_session)
        project = await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id
        )

        result = await update_project(db_session, project.id, {"status": "ON_HOLD"})

        assert result.data.status == "ON_HOLD"

    async def test_update_to_existing_name_is_conflict(self, db_session):
        manager = await create_async(UserFactory, db_session)
        await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id, name="Taken"
        )
        other = await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id
        )

        with pytest.raises(ValidationError) as exc_info:
            await update_project(db_session, other.id, {"name": "Taken"}, manager.id)

        assert exc_info.value.code == 409
        assert exc_info.value.message == DUPLICATE_NAME_MESSAGE

    async def test_update_missing_project_is_404(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await update_project(db_session, "does-not-exist", {"name": "x"})

        assert exc_info.value.code == 404

    async def test_update_accepts_end_strictly_after_start(self, db_session):
        manager = await create_async(UserFactory, db_session)
        project = await create_async(
            ProjectFactory,
            db_session,
            project_manager_id=manager.id,
            start_date=datetime(2024, 1, 1, tzinfo=UTC),
            end_date=datetime(2024, 6, 1, tzinfo=UTC),
        )

        both = await update_project(
            db_session,
            project.id,
            {"startDate": "2024-03-01", "endDate": "2024-03-02"},
            manager.id,
        )
        assert both.data.start_date.date() == date(2024, 3, 1)
        assert both.data.end_date.date() == date(2024, 3, 2)

        end_only = await update_project(
            db_session, project.id, {"endDate": "2024-03-05"}, manager.id
        )
        assert end_only.data.end_date.date() == date(2024, 3, 5)

    async def test_update_accepts_padded_caller_id(self, db_session):
        manager = await create_async(UserFactory, db_session)
        project = await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id
        )

        result = await update_project(
            db_session, project.id, {"name": "Padded"}, f"  {manager.id} "
        )

        assert result.data.name == "Padded"

    async def test_update_sets_known_location(self, db_session):
        manager = await create_async(UserFactory, db_session)
        location = await create_async(LocationFactory, db_session)
        project = await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id
        )

        result = await update_project(
            db_session, project.id, {"locationId": location.id}, manager.id
        )

        assert result.data.location_id == location.id
        assert result.data.location.id == location.id

    async def test_update_unknown_location_is_404(self, db_session):
        manager = await create_async(UserFactory, db_session)
        project = await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id
        )

        with pytest.raises(ValidationError) as exc_info:
            await update_project(
                db_session, project.id, {"locationId": "nowhere"}, manager.id
            )

        assert exc_info.value.code == 404
        assert exc_info.value.message == "Location not found"

    async def test_create_without_dates_inserts_nothing(self, db_session):
        manager = await create_async(UserFactory, db_session)

        with pytest.raises(ValidationError) as exc_info:
            await create_project(db_session, {"name": "NoDates"}, manager.id)

        assert exc_info.value.message == "Invalid start date format"
        rows = await db_session.scalars(select(Project).where(Project.name == "NoDates"))
        assert rows.all() == []

    async def test_create_allows_end_before_start(self, db_session):
        manager = await create_async(UserFactory, db_session)

        result = await create_project(
            db_session,
            {"name": "Backwards", "startDate": "2024-06-01", "endDate": "2024-01-01"},
            manager.id,
        )

        assert result.data.name == "Backwards"
        assert result.data.status == "PLANNED"
        assert result.data.project_manager_id == manager.id
        assert result.data.project_manager.name == manager.name

    async def test_create_duplicate_name_is_conflict(self, db_session):
        manager = await create_async(UserFactory, db_session)
        await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id, name="Same"
        )

        with pytest.raises(ValidationError) as exc_info:
            await create_project(
                db_session,
                {"name": "Same", "startDate": "2024-01-01", "endDate": "2024-12-31"},
                manager.id,
            )

        assert exc_info.value.code == 409

    async def test_list_is_newest_first_and_paginated(self, db_session):
        manager = await create_async(UserFactory, db_session)
        someone_else = await create_async(UserFactory, db_session)
        for name, age in (("Oldest", 3), ("Middle", 2), ("Newest", 1)):
            await create_async(
                ProjectFactory,
                db_session,
                project_manager_id=manager.id,
                name=name,
                created_at=days_ago(age),
            )
        await create_async(
            ProjectFactory, db_session, project_manager_id=someone_else.id
        )

        first = await get_projects_by_user(
            db_session, manager.id, ProjectFilters(page=1, page_size=2)
        )
        second = await get_projects_by_user(
            db_session, manager.id, ProjectFilters(page=2, page_size=2)
        )

        assert [p.name for p in first.data] == ["Newest", "Middle"]
        assert first.total == 3
        assert first.last_page == 2
        assert first.has_next_page is True
        assert [p.name for p in second.data] == ["Oldest"]
        assert second.from_ == 3
        assert second.to == 3
        assert second.has_previous_page is True

    async def test_list_filters_by_status_and_name(self, db_session):
        manager = await create_async(UserFactory, db_session)
        await create_async(
            ProjectFactory,
            db_session,
            project_manager_id=manager.id,
            name="River Bridge",
            status="ACTIVE",
        )
        await create_async(
            ProjectFactory,
            db_session,
            project_manager_id=manager.id,
            name="Bridge Repair",
            status="COMPLETED",
        )
        await create_async(
            ProjectFactory,
            db_session,
            project_manager_id=manager.id,
            name="School",
            status="ACTIVE",
        )

        named = await get_projects_by_user(
            db_session, manager.id, ProjectFilters(name="bridge")
        )
        active_bridges = await get_projects_by_user(
            db_session, manager.id, ProjectFilters(status="ACTIVE", name="BRIDGE")
        )

        assert named.total == 2
        assert [p.name for p in active_bridges.data] == ["River Bridge"]

    async def test_details_include_tasks_and_kpis(self, db_session):
        manager = await create_async(UserFactory, db_session)
        project = await create_async(
            ProjectFactory, db_session, project_manager_id=manager.id
        )
        await create_async(
            TaskFactory,
            db_session,
            project_id=project.id,
            assigned_to_id=manager.id,
        )
        await create_async(KpiFactory, db_session, project_id=project.id)

        result = await get_project_details(db_session, project.id)

        assert result.data.id == project.id
        assert result.data.project_manager.id == manager.id
        assert len(result.data.tasks) == 1
        assert result.data.tasks[0].assigned_to.name == manager.name
        assert len(result.data.kpis) == 1
        assert result.data.sub_projects == []

    async def test_details_missing_project_is_404(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await get_project_details(db_session, "nope")

        assert exc_info.value.code == 404
        assert exc_info.value.message == "Project not found"
