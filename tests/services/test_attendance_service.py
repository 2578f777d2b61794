"""Tests for AttendanceService against an in-memory database."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from hrms_engine.models import Holiday
from hrms_engine.services.attendance_service import AttendanceFilters, AttendanceService
from hrms_engine.services.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

# Monday
DAY = date(2024, 3, 4)


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


class TestSettings:
    """Test thresholds singleton."""

    async def test_defaults_created_on_first_read(self, session):
        settings = await AttendanceService(session).get_settings()
        assert settings.standard_work_hours == Decimal("8")
        assert settings.half_day_threshold == Decimal("4")
        assert settings.allow_self_clock_in is True

    async def test_partial_update_keeps_other_fields(self, session, hr_actor):
        service = AttendanceService(session)
        updated = await service.update_settings(hr_actor, standard_work_hours="9")
        assert updated.standard_work_hours == Decimal("9")
        assert updated.half_day_threshold == Decimal("4")

    async def test_half_day_above_standard_rejected(self, session, hr_actor):
        with pytest.raises(ValidationError) as exc_info:
            await AttendanceService(session).update_settings(
                hr_actor, standard_work_hours=6, half_day_threshold=7
            )
        assert "cannot be greater" in exc_info.value.message

    @pytest.mark.parametrize("standard", [0, -1, 25])
    async def test_standard_hours_out_of_range(self, session, hr_actor, standard):
        with pytest.raises(ValidationError):
            await AttendanceService(session).update_settings(
                hr_actor, standard_work_hours=standard
            )

    async def test_employee_cannot_update(self, session, employee_actor):
        with pytest.raises(PermissionDeniedError):
            await AttendanceService(session).update_settings(
                employee_actor, standard_work_hours=9
            )


class TestMark:
    """Test clock-in/out and HR marking."""

    async def test_full_day(self, session, employee, employee_actor):
        log = await AttendanceService(session).mark(
            employee_actor, day=DAY, check_in=at(9), check_out=at(18)
        )
        assert log.employee_id == employee.employee_id
        assert log.work_hours == Decimal("9.00")
        assert log.status == "present"

    async def test_half_day(self, session, employee_actor):
        log = await AttendanceService(session).mark(
            employee_actor, day=DAY, check_in=at(9), check_out=at(14)
        )
        assert log.work_hours == Decimal("5.00")
        assert log.status == "half_day"

    async def test_clock_in_then_clock_out(self, session, employee_actor):
        service = AttendanceService(session)
        first = await service.mark(employee_actor, day=DAY, check_in=at(9))
        assert first.status == "present"
        assert first.work_hours is None

        second = await service.mark(employee_actor, day=DAY, check_out=at(12, 30))
        assert second.attendance_log_id == first.attendance_log_id
        assert second.check_in == at(9)
        assert second.work_hours == Decimal("3.50")
        assert second.status == "absent"

    async def test_timezone_aware_input_stored_as_utc(self, session, employee_actor):
        ist = timezone(timedelta(hours=5, minutes=30))
        log = await AttendanceService(session).mark(
            employee_actor,
            day=DAY,
            check_in=datetime(2024, 3, 4, 9, 30, tzinfo=ist),
            check_out=datetime(2024, 3, 4, 18, 30, tzinfo=ist),
        )
        assert log.check_in == datetime(2024, 3, 4, 4, 0)
        assert log.work_hours == Decimal("9.00")

    async def test_explicit_status_overrides_classifier(self, session, employee_actor):
        log = await AttendanceService(session).mark(
            employee_actor, day=DAY, check_in=at(9), check_out=at(18), status="on_leave"
        )
        assert log.status == "on_leave"
        assert log.work_hours == Decimal("9.00")

    async def test_weekend_without_timestamps(self, session, employee_actor):
        log = await AttendanceService(session).mark(employee_actor, day=date(2024, 3, 9))
        assert log.status == "weekend"

    async def test_weekday_without_timestamps_is_absent(self, session, employee_actor):
        log = await AttendanceService(session).mark(employee_actor, day=DAY)
        assert log.status == "absent"

    async def test_checkout_before_checkin_rejected(self, session, employee_actor):
        with pytest.raises(ValidationError):
            await AttendanceService(session).mark(
                employee_actor, day=DAY, check_in=at(18), check_out=at(9)
            )

    async def test_checkout_before_stored_checkin_rejected(self, session, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        with pytest.raises(ValidationError) as exc_info:
            await service.mark(employee_actor, day=DAY, check_out=at(8))
        assert exc_info.value.message == "Check-out must be after check-in"
        assert log.check_out is None
        assert log.status == "present"

    async def test_unknown_status_rejected(self, session, employee_actor):
        with pytest.raises(ValidationError) as exc_info:
            await AttendanceService(session).mark(employee_actor, day=DAY, status="late")
        assert "late" in exc_info.value.message

    async def test_employee_cannot_mark_others(
        self, session, employee_actor, second_employee
    ):
        with pytest.raises(PermissionDeniedError):
            await AttendanceService(session).mark(
                employee_actor, employee_id=second_employee.employee_id, day=DAY
            )

    async def test_self_clock_in_disabled(self, session, employee_actor, hr_actor):
        service = AttendanceService(session)
        await service.update_settings(hr_actor, allow_self_clock_in=False)
        with pytest.raises(PermissionDeniedError):
            await service.mark(employee_actor, day=DAY, check_in=at(9))

    async def test_hr_marks_for_employee(self, session, hr_actor, employee):
        log = await AttendanceService(session).mark(
            hr_actor, employee_id=employee.employee_id, day=DAY, status="absent"
        )
        assert log.employee_id == employee.employee_id
        assert log.status == "absent"

    async def test_uses_current_thresholds(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        await service.update_settings(
            hr_actor, standard_work_hours=10, half_day_threshold=6
        )
        log = await service.mark(employee_actor, day=DAY, check_in=at(9), check_out=at(14))
        assert log.status == "absent"


class TestUpdate:
    """Test HR edits."""

    async def test_reclassifies_on_new_checkout(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9), check_out=at(12))
        assert log.status == "absent"

        edited = await service.update(
            hr_actor, log.attendance_log_id, "Forgot to clock out", check_out=at(17, 30)
        )
        assert edited.work_hours == Decimal("8.50")
        assert edited.status == "present"
        assert edited.edited_by == hr_actor.user_id
        assert edited.edit_reason == "Forgot to clock out"

    async def test_status_only_edit_keeps_hours(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9), check_out=at(18))
        edited = await service.update(
            hr_actor, log.attendance_log_id, "Approved leave", status="on_leave"
        )
        assert edited.status == "on_leave"
        assert edited.work_hours == Decimal("9.00")

    async def test_undetermined_keeps_existing_status(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        edited = await service.update(
            hr_actor, log.attendance_log_id, "Note added", notes="Client visit"
        )
        assert edited.status == "present"
        assert edited.notes == "Client visit"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    async def test_edit_reason_required(self, session, hr_actor, employee_actor, reason):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        with pytest.raises(ValidationError) as exc_info:
            await service.update(hr_actor, log.attendance_log_id, reason, status="absent")
        assert exc_info.value.message == "An edit reason is required"

    async def test_employee_cannot_edit(self, session, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        with pytest.raises(PermissionDeniedError):
            await service.update(employee_actor, log.attendance_log_id, "mine")

    async def test_missing_record(self, session, hr_actor):
        with pytest.raises(NotFoundError):
            await AttendanceService(session).update(hr_actor, uuid4(), "reason")

    async def test_move_to_free_date(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        moved = await service.update(
            hr_actor, log.attendance_log_id, "Wrong day", day=DAY + timedelta(days=1)
        )
        assert moved.date == date(2024, 3, 5)

    async def test_move_onto_existing_record_rejected(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        next_day = DAY + timedelta(days=1)
        await service.mark(employee_actor, day=next_day, check_in=at(9, day=next_day))

        with pytest.raises(ConflictError) as exc_info:
            await service.update(hr_actor, log.attendance_log_id, "Wrong day", day=next_day)
        assert exc_info.value.message == "Attendance already exists for this date"
        assert log.date == DAY

    async def test_move_onto_locked_date_rejected(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        april_1 = date(2024, 4, 1)
        await service.mark(employee_actor, day=april_1, check_in=at(9, day=april_1))
        await service.lock_month(hr_actor, 4, 2024)

        with pytest.raises(ConflictError) as exc_info:
            await service.update(hr_actor, log.attendance_log_id, "Wrong month", day=april_1)
        assert exc_info.value.message == "Attendance is locked for this date"
        assert log.date == DAY

    async def test_unknown_status_rejected(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9))
        with pytest.raises(ValidationError):
            await service.update(hr_actor, log.attendance_log_id, "Fix", status="late")
        assert log.status == "present"


class TestLocking:
    """Test month locks."""

    async def test_lock_blocks_edits_and_marks(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        log = await service.mark(employee_actor, day=DAY, check_in=at(9), check_out=at(18))
        april_1 = date(2024, 4, 1)
        await service.mark(employee_actor, day=april_1, check_in=at(9, day=april_1))

        locked = await service.lock_month(hr_actor, 3, 2024)
        assert locked == 1
        assert log.is_locked is True

        with pytest.raises(ConflictError):
            await service.update(hr_actor, log.attendance_log_id, "late fix", status="absent")
        with pytest.raises(ConflictError):
            await service.mark(employee_actor, day=DAY, check_out=at(19))

    async def test_relock_counts_only_new_rows(self, session, hr_actor, employee_actor):
        service = AttendanceService(session)
        await service.mark(employee_actor, day=DAY, check_in=at(9))
        assert await service.lock_month(hr_actor, 3, 2024) == 1
        assert await service.lock_month(hr_actor, 3, 2024) == 0

    async def test_employee_cannot_lock(self, session, employee_actor):
        with pytest.raises(PermissionDeniedError):
            await AttendanceService(session).lock_month(employee_actor, 3, 2024)


class TestReadModels:
    async def test_employee_sees_only_own_logs(
        self, session, hr_actor, employee, employee_actor, second_employee
    ):
        service = AttendanceService(session)
        await service.mark(employee_actor, day=DAY, check_in=at(9))
        await service.mark(hr_actor, employee_id=second_employee.employee_id, day=DAY)

        mine = await service.list_logs(
            employee_actor, AttendanceFilters(employee_id=second_employee.employee_id)
        )
        assert [log.employee_id for log in mine] == [employee.employee_id]

        everyone = await service.list_logs(hr_actor)
        assert len(everyone) == 2

    async def test_filters_by_range_and_status(self, session, employee_actor):
        service = AttendanceService(session)
        await service.mark(employee_actor, day=DAY, check_in=at(9), check_out=at(18))
        await service.mark(employee_actor, day=DAY + timedelta(days=1))
        await service.mark(employee_actor, day=DAY + timedelta(days=7))

        logs = await service.list_logs(
            employee_actor,
            AttendanceFilters(start_date=DAY, end_date=DAY + timedelta(days=3)),
        )
        assert [log.date for log in logs] == [DAY + timedelta(days=1), DAY]

        absent = await service.list_logs(employee_actor, AttendanceFilters(status="absent"))
        assert len(absent) == 2

    async def test_terminated_employees_hidden(self, session, hr_actor, employee, employee_actor):
        service = AttendanceService(session)
        await service.mark(employee_actor, day=DAY, check_in=at(9))
        employee.status = "terminated"
        await session.flush()
        assert await service.list_logs(hr_actor) == []

    async def test_monthly_summary_with_holiday(self, session, employee_actor):
        service = AttendanceService(session)
        session.add(Holiday(name="Holi", date=date(2024, 3, 25), holiday_type="national"))
        await session.flush()

        march_1 = date(2024, 3, 1)
        await service.mark(
            employee_actor, day=march_1, check_in=at(9, day=march_1), check_out=at(18, day=march_1)
        )
        await service.mark(
            employee_actor,
            day=date(2024, 3, 4),
            check_in=at(9, day=date(2024, 3, 4)),
            check_out=at(14, day=date(2024, 3, 4)),
        )

        summary = await service.monthly_summary(
            employee_actor, 3, 2024, today=date(2024, 4, 15)
        )
        # March 2024: 21 weekdays, one of them a holiday
        assert summary.present == Decimal("1.5")
        assert summary.absent == Decimal("18.5")
        assert summary.pending == 0
        assert summary.attendance_rate == 8

    async def test_status_counts(self, session, employee_actor):
        service = AttendanceService(session)
        await service.mark(employee_actor, day=DAY, check_in=at(9), check_out=at(18))
        await service.mark(
            employee_actor,
            day=DAY + timedelta(days=1),
            check_in=at(9, day=DAY + timedelta(days=1)),
            check_out=at(14, day=DAY + timedelta(days=1)),
        )
        counts = await service.status_counts(employee_actor, 3, 2024)
        assert counts.total_days == 2
        assert counts.present == 1
        assert counts.half_day == 1
        assert counts.total_work_hours == Decimal("14.00")

    async def test_invalid_month(self, session, employee_actor):
        with pytest.raises(ValidationError):
            await AttendanceService(session).status_counts(employee_actor, 13, 2024)
