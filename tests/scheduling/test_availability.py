from datetime import date, time, datetime, timedelta

from rotadesk.services.scheduling.availability import (
    AVAILABILITY_PENALTY,
    check_availability,
    check_builtin_rules,
    datetime_ranges_overlap,
    is_on_leave,
    slot_overlaps_window,
    slot_within_window,
)
from rotadesk.services.scheduling.constraint_config import AvailabilityConfig
from rotadesk.services.scheduling.types import (
    ConstraintType,
    LeaveRequest,
    RunState,
)

from conftest import (
    get_test_monday,
    make_assignment,
    make_constraint,
    make_definition,
    make_slot,
)


def availability(config, **kwargs):
    return make_constraint(1, ConstraintType.AVAILABILITY, config, **kwargs)


class TestDatetimeRangesOverlap:
    def test_no_overlap(self):
        assert datetime_ranges_overlap(
            datetime(2025, 1, 20, 8), datetime(2025, 1, 20, 10),
            datetime(2025, 1, 20, 12), datetime(2025, 1, 20, 14),
        ) is False

    def test_adjacent_no_overlap(self):
        assert datetime_ranges_overlap(
            datetime(2025, 1, 20, 8), datetime(2025, 1, 20, 12),
            datetime(2025, 1, 20, 12), datetime(2025, 1, 20, 16),
        ) is False

    def test_overlap_across_midnight(self):
        assert datetime_ranges_overlap(
            datetime(2025, 1, 20, 22), datetime(2025, 1, 21, 6),
            datetime(2025, 1, 21, 5), datetime(2025, 1, 21, 13),
        ) is True


class TestWindows:
    def test_slot_inside_window(self):
        slot = make_slot(make_definition(start=time(9, 0), end=time(17, 0)), get_test_monday())
        config = AvailabilityConfig(start_time=time(8, 0), end_time=time(18, 0))
        assert slot_within_window(config, slot)

    def test_slot_sticking_out(self):
        slot = make_slot(make_definition(start=time(9, 0), end=time(19, 0)), get_test_monday())
        config = AvailabilityConfig(start_time=time(8, 0), end_time=time(18, 0))
        assert not slot_within_window(config, slot)
        assert slot_overlaps_window(config, slot)

    def test_overnight_window_holds_overnight_slot(self):
        slot = make_slot(make_definition(start=time(22, 0), end=time(6, 0)), get_test_monday())
        config = AvailabilityConfig(start_time=time(20, 0), end_time=time(7, 0))
        assert slot_within_window(config, slot)

    def test_all_day_window(self):
        slot = make_slot(make_definition(start=time(22, 0), end=time(6, 0)), get_test_monday())
        assert slot_within_window(AvailabilityConfig(), slot)


class TestIsOnLeave:
    def test_no_leave(self):
        slot = make_slot(make_definition(), get_test_monday())
        assert is_on_leave(1, slot, []) is False

    def test_leave_covers_date(self):
        monday = get_test_monday()
        slot = make_slot(make_definition(), monday)
        leave = [LeaveRequest(staff_id=1, start_date=monday - timedelta(days=2), end_date=monday)]
        assert is_on_leave(1, slot, leave) is True

    def test_other_staff_not_affected(self):
        monday = get_test_monday()
        slot = make_slot(make_definition(), monday)
        leave = [LeaveRequest(staff_id=2, start_date=monday, end_date=monday)]
        assert is_on_leave(1, slot, leave) is False


class TestBuiltinRules:
    def test_free_staff(self):
        slot = make_slot(make_definition(), get_test_monday())
        assert check_builtin_rules(1, slot, RunState().ledger(1), []) is None

    def test_second_shift_same_day(self):
        monday = get_test_monday()
        state = RunState()
        state.record(make_assignment(1, make_definition(id=1), monday))
        evening = make_slot(make_definition(id=2, code="EVE", start=time(17, 0), end=time(23, 0)), monday)
        assert check_builtin_rules(1, evening, state.ledger(1), []) == "Already assigned on this date"

    def test_overnight_shift_overlaps_next_morning(self):
        monday = get_test_monday()
        state = RunState()
        state.record(make_assignment(1, make_definition(id=1, start=time(22, 0), end=time(8, 0)), monday))
        early = make_slot(make_definition(id=2, code="EARLY", start=time(6, 0), end=time(12, 0)), monday + timedelta(days=1))
        assert check_builtin_rules(1, early, state.ledger(1), []) == "Overlaps another assigned shift"

    def test_leave_wins(self):
        monday = get_test_monday()
        slot = make_slot(make_definition(), monday)
        leave = [LeaveRequest(staff_id=1, start_date=monday, end_date=monday)]
        assert check_builtin_rules(1, slot, RunState().ledger(1), leave) == "On approved leave"


class TestCheckAvailability:
    def test_no_windows(self):
        slot = make_slot(make_definition(), get_test_monday())
        assert check_availability([], slot) is None

    def test_fits_declared_window(self):
        slot = make_slot(make_definition(), get_test_monday())
        constraints = [availability({"day_of_week": 0, "start_time": "07:00", "end_time": "17:00"})]
        assert check_availability(constraints, slot) is None

    def test_day_without_window_is_unavailable(self):
        tuesday = get_test_monday() + timedelta(days=1)
        slot = make_slot(make_definition(), tuesday)
        constraints = [availability({"day_of_week": 0, "start_time": "07:00", "end_time": "17:00"})]
        outcome = check_availability(constraints, slot)
        assert outcome.ineligible_reason == "Outside declared availability"

    def test_any_matching_window_is_enough(self):
        slot = make_slot(make_definition(start=time(17, 0), end=time(23, 0)), get_test_monday())
        constraints = [
            availability({"day_of_week": 0, "start_time": "07:00", "end_time": "12:00"}),
            availability({"day_of_week": 0, "start_time": "16:00", "end_time": "23:30"}),
        ]
        assert check_availability(constraints, slot) is None

    def test_unavailable_window_blocks(self):
        slot = make_slot(make_definition(), get_test_monday())
        constraints = [availability({"start_time": "12:00", "end_time": "13:00", "available": False})]
        assert check_availability(constraints, slot).ineligible_reason == "Marked unavailable"

    def test_unavailable_elsewhere_in_the_day(self):
        slot = make_slot(make_definition(), get_test_monday())
        constraints = [availability({"start_time": "18:00", "end_time": "22:00", "available": False})]
        assert check_availability(constraints, slot) is None

    def test_soft_window_scores(self):
        tuesday = get_test_monday() + timedelta(days=1)
        slot = make_slot(make_definition(), tuesday)
        constraints = [availability({"day_of_week": 0}, is_hard=False, priority=5)]
        outcome = check_availability(constraints, slot)
        assert outcome.ineligible_reason is None
        assert outcome.score == AVAILABILITY_PENALTY * 0.5
        assert outcome.violation == "Outside declared availability"

    def test_blocked_date_window(self):
        slot = make_slot(make_definition(), date(2025, 1, 25))  # a Saturday
        constraints = [availability({"dayOfWeek": 6, "available": False})]  # editor Saturday
        assert check_availability(constraints, slot).ineligible_reason == "Marked unavailable"
