import pytest

from rotadesk.services.scheduling.errors import InvalidTransitionError, TransitionGuardError
from rotadesk.services.scheduling.lifecycle import (
    ScheduleAction,
    TransitionContext,
    allowed_actions,
    apply_transition,
)
from rotadesk.services.scheduling.types import ScheduleStatus


READY = TransitionContext(active_definition_count=2, assignment_count=10, is_valid=True)


class TestGenerate:

    @pytest.mark.parametrize("status", [ScheduleStatus.DRAFT, ScheduleStatus.GENERATED])
    def test_allowed(self, status):
        assert apply_transition(status, ScheduleAction.GENERATE, READY) == ScheduleStatus.GENERATED

    @pytest.mark.parametrize("status", [ScheduleStatus.REVIEW, ScheduleStatus.PUBLISHED, ScheduleStatus.ARCHIVED])
    def test_rejected(self, status):
        with pytest.raises(InvalidTransitionError):
            apply_transition(status, ScheduleAction.GENERATE, READY)

    def test_needs_shift_definitions(self):
        with pytest.raises(TransitionGuardError, match="shift definitions"):
            apply_transition(ScheduleStatus.DRAFT, ScheduleAction.GENERATE, TransitionContext())


class TestReview:

    def test_generated_to_review(self):
        assert apply_transition(ScheduleStatus.GENERATED, ScheduleAction.SUBMIT_FOR_REVIEW, READY) == ScheduleStatus.REVIEW

    def test_needs_assignments(self):
        with pytest.raises(TransitionGuardError):
            apply_transition(ScheduleStatus.GENERATED, ScheduleAction.SUBMIT_FOR_REVIEW, TransitionContext())

    def test_draft_cannot_be_reviewed(self):
        with pytest.raises(InvalidTransitionError):
            apply_transition(ScheduleStatus.DRAFT, ScheduleAction.SUBMIT_FOR_REVIEW, READY)


class TestPublish:

    @pytest.mark.parametrize("status", [ScheduleStatus.GENERATED, ScheduleStatus.REVIEW])
    def test_valid_schedule(self, status):
        assert apply_transition(status, ScheduleAction.PUBLISH, READY) == ScheduleStatus.PUBLISHED

    def test_invalid_schedule_refused(self):
        ctx = TransitionContext(assignment_count=5, is_valid=False)
        with pytest.raises(TransitionGuardError, match="coverage"):
            apply_transition(ScheduleStatus.REVIEW, ScheduleAction.PUBLISH, ctx)

    def test_force_overrides_invalid(self):
        ctx = TransitionContext(assignment_count=5, is_valid=False, force=True)
        assert apply_transition(ScheduleStatus.REVIEW, ScheduleAction.PUBLISH, ctx) == ScheduleStatus.PUBLISHED

    def test_force_cannot_publish_empty(self):
        ctx = TransitionContext(assignment_count=0, is_valid=True, force=True)
        with pytest.raises(TransitionGuardError, match="no assignments"):
            apply_transition(ScheduleStatus.GENERATED, ScheduleAction.PUBLISH, ctx)

    @pytest.mark.parametrize("status", [ScheduleStatus.DRAFT, ScheduleStatus.PUBLISHED, ScheduleStatus.ARCHIVED])
    def test_rejected(self, status):
        with pytest.raises(InvalidTransitionError):
            apply_transition(status, ScheduleAction.PUBLISH, READY)


class TestArchive:

    def test_published_to_archived(self):
        assert apply_transition(ScheduleStatus.PUBLISHED, ScheduleAction.ARCHIVE) == ScheduleStatus.ARCHIVED

    @pytest.mark.parametrize("status", [ScheduleStatus.DRAFT, ScheduleStatus.GENERATED, ScheduleStatus.REVIEW, ScheduleStatus.ARCHIVED])
    def test_rejected(self, status):
        with pytest.raises(InvalidTransitionError):
            apply_transition(status, ScheduleAction.ARCHIVE)


class TestAllowedActions:

    def test_generated(self):
        assert allowed_actions(ScheduleStatus.GENERATED) == [
            ScheduleAction.GENERATE,
            ScheduleAction.SUBMIT_FOR_REVIEW,
            ScheduleAction.PUBLISH,
        ]

    def test_archived_is_terminal(self):
        assert allowed_actions(ScheduleStatus.ARCHIVED) == []

    def test_error_message_names_status(self):
        with pytest.raises(InvalidTransitionError) as exc:
            apply_transition(ScheduleStatus.ARCHIVED, ScheduleAction.PUBLISH)
        assert exc.value.status == "ARCHIVED"
        assert "ARCHIVED" in str(exc.value)
