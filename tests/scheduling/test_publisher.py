import pytest
from datetime import date, timedelta

from rotadesk.db.models import ScheduleStatusDB
from rotadesk.services.scheduling import (
    InvalidScheduleInputError,
    InvalidTransitionError,
    ScheduleStatus,
    SolverOptions,
    TransitionGuardError,
    WarningType,
    archive_schedule,
    generate_schedule,
    publish_schedule,
    submit_for_review,
    validate_schedule,
)
from rotadesk.services.scheduling.repository import create_schedule

from conftest import add_definition, add_schedule, get_test_monday


def wednesday_override(staff: int) -> SolverOptions:
    wednesday = get_test_monday() + timedelta(days=2)
    return SolverOptions(staffing_requirements={f"{wednesday.isoformat()}_1": staff})


class TestValidateSchedule:

    def test_generated_schedule_is_valid(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        result = validate_schedule(db_session, seeded_week.id)
        assert result.is_valid is True

    def test_draft_schedule_reports_gaps(self, db_session, seeded_week):
        result = validate_schedule(db_session, seeded_week.id)
        assert result.is_valid is False
        assert len(result.high_warnings) == 7

    def test_uses_generation_overrides(self, db_session, seeded_week):
        # two staff cannot meet a requirement of three; validation must measure the same target
        generate_schedule(db_session, seeded_week.id, wednesday_override(3))
        result = validate_schedule(db_session, seeded_week.id)
        assert result.is_valid is False
        assert [w.type for w in result.high_warnings] == [WarningType.UNDERSTAFFED]
        assert result.high_warnings[0].shift_date == get_test_monday() + timedelta(days=2)

    def test_validation_is_read_only(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        validate_schedule(db_session, seeded_week.id)
        db_session.refresh(seeded_week)
        assert seeded_week.version == 2


class TestReviewAndArchive:

    def test_submit_for_review(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        assert submit_for_review(db_session, seeded_week.id) == ScheduleStatus.REVIEW
        db_session.refresh(seeded_week)
        assert seeded_week.status == ScheduleStatusDB.REVIEW
        assert seeded_week.version == 3

    def test_review_needs_assignments(self, db_session):
        add_definition(db_session)
        schedule = add_schedule(db_session)
        generate_schedule(db_session, schedule.id)  # no staff, nothing assigned
        with pytest.raises(TransitionGuardError):
            submit_for_review(db_session, schedule.id)

    def test_regenerate_after_review_refused(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        submit_for_review(db_session, seeded_week.id)
        with pytest.raises(InvalidTransitionError):
            generate_schedule(db_session, seeded_week.id)

    def test_archive_published(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        publish_schedule(db_session, seeded_week.id)
        assert archive_schedule(db_session, seeded_week.id) == ScheduleStatus.ARCHIVED

    def test_archive_requires_published(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        with pytest.raises(InvalidTransitionError):
            archive_schedule(db_session, seeded_week.id)


class TestPublishSchedule:

    def test_publish_valid_schedule(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        result = publish_schedule(db_session, seeded_week.id)

        assert result.status == ScheduleStatus.PUBLISHED
        assert result.forced is False
        db_session.refresh(seeded_week)
        assert seeded_week.status == ScheduleStatusDB.PUBLISHED
        assert seeded_week.published_at is not None
        assert seeded_week.generation_log["publication"]["forced"] is False
        assert "params" in seeded_week.generation_log

    def test_publish_from_review(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        submit_for_review(db_session, seeded_week.id)
        assert publish_schedule(db_session, seeded_week.id).status == ScheduleStatus.PUBLISHED

    def test_gaps_block_publication(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id, wednesday_override(3))
        with pytest.raises(TransitionGuardError) as exc:
            publish_schedule(db_session, seeded_week.id)

        assert len(exc.value.warnings) == 1
        assert exc.value.warnings[0].type == WarningType.UNDERSTAFFED
        db_session.refresh(seeded_week)
        assert seeded_week.status == ScheduleStatusDB.GENERATED
        assert seeded_week.published_at is None

    def test_force_publish(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id, wednesday_override(3))
        result = publish_schedule(db_session, seeded_week.id, force=True)

        assert result.forced is True
        assert any(w.type == WarningType.UNDERSTAFFED for w in result.warnings)
        db_session.refresh(seeded_week)
        assert seeded_week.generation_log["publication"]["forced"] is True
        assert any(w["type"] == "UNDERSTAFFED" for w in seeded_week.generation_log["warnings"])

    def test_force_on_valid_schedule_is_not_recorded_as_forced(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        assert publish_schedule(db_session, seeded_week.id, force=True).forced is False

    def test_force_cannot_publish_empty_schedule(self, db_session):
        add_definition(db_session)
        schedule = add_schedule(db_session)
        generate_schedule(db_session, schedule.id)
        with pytest.raises(TransitionGuardError):
            publish_schedule(db_session, schedule.id, force=True)

    def test_publish_twice(self, db_session, seeded_week):
        generate_schedule(db_session, seeded_week.id)
        publish_schedule(db_session, seeded_week.id)
        with pytest.raises(InvalidTransitionError):
            publish_schedule(db_session, seeded_week.id)

    def test_draft_cannot_publish(self, db_session, seeded_week):
        with pytest.raises(InvalidTransitionError):
            publish_schedule(db_session, seeded_week.id)


class TestCreateSchedule:

    def test_creates_draft(self, db_session):
        schedule = create_schedule(db_session, 1, "Week 5", date(2025, 1, 27), date(2025, 2, 2), created_by_user_id=7)
        assert schedule.status == ScheduleStatusDB.DRAFT
        assert schedule.version == 1
        assert schedule.created_by_user_id == 7

    def test_reversed_range(self, db_session):
        with pytest.raises(InvalidScheduleInputError):
            create_schedule(db_session, 1, "Bad", date(2025, 2, 2), date(2025, 1, 27))

    def test_overlap_rejected(self, db_session, seeded_week):
        with pytest.raises(InvalidScheduleInputError):
            create_schedule(db_session, 1, "Clash", date(2025, 1, 26), date(2025, 2, 1))

    def test_other_venue_may_overlap(self, db_session, seeded_week):
        assert create_schedule(db_session, 2, "Venue 2", date(2025, 1, 20), date(2025, 1, 26)).venue_id == 2

    def test_archived_schedule_does_not_block(self, db_session):
        add_schedule(db_session, status=ScheduleStatusDB.ARCHIVED)
        schedule = create_schedule(db_session, 1, "Replacement", date(2025, 1, 20), date(2025, 1, 26))
        assert schedule.status == ScheduleStatusDB.DRAFT
