import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import FlakyBackend, run
from trackademic.core.attendance_scanner import AttendanceScanError, ScanStep, scan
from trackademic.crud.course import get_course
from trackademic.db.backend import eq
from trackademic.schemas.attendance import ScanOutcome

SESSION_ID = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"
T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _join_qr(course_id=None):
    data = {"type": "session_join", "sessionId": SESSION_ID}
    if course_id:
        data["courseId"] = course_id
    return json.dumps(data)


def _attendance_qr(course_id):
    return json.dumps({"type": "session_attendance", "sessionId": SESSION_ID, "courseId": course_id, "timestamp": 1})


@pytest.fixture
def session(seeded):
    run(seeded.backend.insert("sessions", {"id": SESSION_ID, "course_id": seeded.course_id, "status": "active"}))
    return SESSION_ID


def _rows(db, table, *filters):
    return run(db.select(table, filters=list(filters)))


def test_session_time_in_then_time_out(seeded, session):
    db = seeded.backend

    first = run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0))
    assert first.outcome == ScanOutcome.TIME_IN
    assert first.title == "Time In Recorded"

    participants = _rows(db, "session_participants", eq("session_id", session))
    assert len(participants) == 1
    assert participants[0]["marked_present"] is True

    record = first.record
    assert record.status == "present"
    assert record.session_id == session
    assert record.course_id == seeded.course_id
    assert record.time_out is None
    # time_in берётся из joined_at участника
    assert record.time_in == datetime.fromisoformat(participants[0]["joined_at"])

    second = run(scan(db, seeded.student_id, _attendance_qr(seeded.course_id), now=T0 + timedelta(hours=1)))
    assert second.outcome == ScanOutcome.TIME_OUT
    assert second.record.id == record.id
    assert second.record.time_out == T0 + timedelta(hours=1)

    records = _rows(db, "attendance", eq("student_id", seeded.student_id))
    assert len(records) == 1


def test_third_scan_is_already_timed_out(seeded, session):
    db = seeded.backend
    run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0))
    run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0 + timedelta(minutes=50)))
    before = _rows(db, "attendance", eq("session_id", session))

    third = run(scan(db, seeded.student_id, _attendance_qr(seeded.course_id), now=T0 + timedelta(hours=2)))
    assert third.outcome == ScanOutcome.ALREADY_TIMED_OUT
    assert third.title == "Already Timed Out"
    assert third.mutated is False
    assert _rows(db, "attendance", eq("session_id", session)) == before


def test_rescan_does_not_duplicate_participant(seeded, session):
    db = seeded.backend
    run(scan(db, seeded.student_id, _join_qr(), course=run(get_course(db, seeded.course_id)), now=T0))
    run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0 + timedelta(minutes=5)))
    assert len(_rows(db, "session_participants", eq("session_id", session))) == 1


def test_join_without_course_uses_current_course(seeded, session):
    db = seeded.backend
    course = run(get_course(db, seeded.course_id))
    result = run(scan(db, seeded.student_id, _join_qr(), course=course, now=T0))
    assert result.outcome == ScanOutcome.TIME_IN
    assert result.record.course_id == seeded.course_id


def test_join_without_any_course_fails(seeded, session):
    db = seeded.backend
    with pytest.raises(AttendanceScanError) as exc:
        run(scan(db, seeded.student_id, _join_qr(), now=T0))
    assert exc.value.step == ScanStep.COURSE_RESOLUTION
    assert exc.value.message == "Could not determine the course for the attendance record."
    assert _rows(db, "attendance") == []


def test_participant_failure_aborts_scan(seeded, session):
    db = FlakyBackend(seeded.backend, fail_on=[("upsert", "session_participants")])
    with pytest.raises(AttendanceScanError) as exc:
        run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0))
    assert exc.value.step == ScanStep.JOIN_VERIFICATION
    assert exc.value.message == "Failed to verify session participation."
    assert _rows(seeded.backend, "attendance") == []


def test_lookup_failure(seeded, session):
    db = FlakyBackend(seeded.backend, fail_on=[("select", "attendance")])
    with pytest.raises(AttendanceScanError) as exc:
        run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0))
    assert exc.value.step == ScanStep.ATTENDANCE_LOOKUP


def test_insert_failure_leaves_participant_marked(seeded, session):
    db = FlakyBackend(seeded.backend, fail_on=[("insert", "attendance")])
    with pytest.raises(AttendanceScanError) as exc:
        run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0))
    assert exc.value.step == ScanStep.ATTENDANCE_INSERT

    # Участник уже отмечен, записи посещаемости нет — окно частичного сбоя
    participants = _rows(seeded.backend, "session_participants", eq("session_id", session))
    assert participants[0]["marked_present"] is True
    assert _rows(seeded.backend, "attendance") == []


def test_update_failure(seeded, session):
    run(scan(seeded.backend, seeded.student_id, _join_qr(seeded.course_id), now=T0))
    db = FlakyBackend(seeded.backend, fail_on=[("update", "attendance")])
    with pytest.raises(AttendanceScanError) as exc:
        run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0 + timedelta(hours=1)))
    assert exc.value.step == ScanStep.ATTENDANCE_UPDATE
    assert exc.value.message == "Failed to record your time out."


def test_racing_insert_surfaces_as_insert_failure(seeded, session):
    run(scan(seeded.backend, seeded.student_id, _join_qr(seeded.course_id), now=T0))
    # Второй скан «не увидел» первую запись и пытается вставить ещё одну
    db = FlakyBackend(seeded.backend, stale_tables=["attendance"])
    with pytest.raises(AttendanceScanError) as exc:
        run(scan(db, seeded.student_id, _join_qr(seeded.course_id), now=T0 + timedelta(seconds=1)))
    assert exc.value.step == ScanStep.ATTENDANCE_INSERT
    assert len(_rows(seeded.backend, "attendance")) == 1


def test_legacy_cycle_creates_one_record(seeded):
    db = seeded.backend
    course = run(get_course(db, seeded.course_id))

    first = run(scan(db, seeded.student_id, "student-ABC123", course=course, now=T0))
    assert first.outcome == ScanOutcome.TIME_IN
    assert first.record.session_id is None
    assert first.record.time_in == T0

    second = run(scan(db, seeded.student_id, "student-ABC123", course=course, now=T0 + timedelta(hours=1)))
    assert second.outcome == ScanOutcome.TIME_OUT
    assert second.message == "You have successfully timed out."

    records = _rows(db, "attendance", eq("course_id", seeded.course_id))
    assert len(records) == 1
    assert records[0]["time_out"] is not None


def test_legacy_new_cycle_after_time_out(seeded):
    db = seeded.backend
    course = run(get_course(db, seeded.course_id))
    for minutes in (0, 60, 120):
        run(scan(db, seeded.student_id, "student-ABC123", course=course, now=T0 + timedelta(minutes=minutes)))

    records = run(db.select("attendance", filters=[eq("course_id", seeded.course_id)], order_by="time_in"))
    assert len(records) == 2
    assert records[0]["time_out"] is not None
    assert records[1]["time_out"] is None


def test_legacy_wrong_course(seeded):
    db = seeded.backend
    course = run(get_course(db, seeded.course_id))
    result = run(scan(db, seeded.student_id, "student-XYZ789", course=course, now=T0))
    assert result.outcome == ScanOutcome.WRONG_COURSE
    assert result.message == "This QR code is for a different course."
    assert _rows(db, "attendance") == []


def test_invalid_qr_does_not_mutate(seeded, session):
    db = seeded.backend
    course = run(get_course(db, seeded.course_id))
    result = run(scan(db, seeded.student_id, "https://example.com", course=course, now=T0))
    assert result.outcome == ScanOutcome.INVALID_QR
    assert result.title == "Invalid QR Code"
    assert _rows(db, "attendance") == []
    assert _rows(db, "session_participants") == []
