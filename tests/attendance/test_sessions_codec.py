from datetime import time

from src.staffing_ops.staffing_ops.attendance.model import Session
from src.staffing_ops.staffing_ops.attendance.sessions import (
    decode,
    encode,
    extract_legacy_jobs_count,
    has_valid_times,
    is_session_log,
    migrate_legacy_notes,
    strip_legacy_markers,
)


def test_decode_reads_documented_wire_format():
    raw = '{"sessions":[{"in":"09:00:00","out":"17:30:00","jobs":3}, {"in":"18:00:00"}]}'

    assert decode(raw) == [
        Session(check_in="09:00:00", check_out="17:30:00", jobs=3),
        Session(check_in="18:00:00"),
    ]


def test_decode_drops_entries_without_check_in_and_keeps_order():
    raw = '{"sessions":[{"in":"13:00"},{"out":"14:00"},{"in":""},"junk",{"in":"08:00","out":"09:00"}]}'

    assert decode(raw) == [Session(check_in="13:00"), Session(check_in="08:00", check_out="09:00")]


def test_decode_never_raises_on_bad_input():
    for raw in (None, "", "Jobs Applied: 3", "{not json", "[1, 2]", '{"sessions": "x"}', '{"other": []}', "null"):
        assert decode(raw) == []


def test_decode_treats_bad_job_counts_as_zero():
    raw = '{"sessions":[{"in":"09:00","jobs":-2},{"in":"10:00","jobs":"4"},{"in":"11:00","jobs":true}]}'

    assert [s.jobs for s in decode(raw)] == [0, 0, 0]


def test_encode_omits_defaults_and_round_trips():
    sessions = [Session("09:00:00", "12:00:00", 2), Session("13:00:00", "17:00:00"), Session("18:00:00")]

    raw = encode(sessions)

    assert raw == '{"sessions":[{"in":"09:00:00","out":"12:00:00","jobs":2},{"in":"13:00:00","out":"17:00:00"},{"in":"18:00:00"}]}'
    assert decode(raw) == sessions
    assert decode(encode([])) == []


def test_legacy_jobs_count_last_marker_wins():
    assert extract_legacy_jobs_count("Jobs Applied: 2 ... Jobs Applied: 5") == 5
    assert extract_legacy_jobs_count("jobs applied:7") == 7
    assert extract_legacy_jobs_count("no markers here") == 0
    assert extract_legacy_jobs_count(None) == 0


def test_strip_legacy_markers_removes_every_marker():
    assert strip_legacy_markers("Jobs Applied: 2 ... Jobs Applied: 5") == "..."
    assert strip_legacy_markers("  Called 3 clients. JOBS APPLIED: 4 ") == "Called 3 clients."
    assert strip_legacy_markers(None) == ""


def test_migrate_json_notes_moves_sessions_out_of_notes():
    migrated = migrate_legacy_notes('{"sessions":[{"in":"09:00:00","out":"10:00:00","jobs":1}]}', None, None)

    assert migrated.sessions == (Session("09:00:00", "10:00:00", 1),)
    assert migrated.notes is None


def test_migrate_single_span_carries_legacy_job_count():
    migrated = migrate_legacy_notes("Morning calls. Jobs Applied: 4", time(9, 0), time(17, 0))

    assert migrated.sessions == (Session("09:00:00", "17:00:00", 4),)
    assert migrated.notes == "Morning calls."


def test_migrate_open_legacy_span_and_note_only_records():
    assert migrate_legacy_notes(None, time(9, 30), None).sessions == (Session("09:30:00"),)

    note_only = migrate_legacy_notes("Jobs Applied: 2", None, None)
    assert note_only.sessions == ()
    assert note_only.notes is None


def test_empty_session_log_is_not_kept_as_free_text():
    assert is_session_log('{"sessions":[]}')
    assert not is_session_log("Jobs Applied: 2")
    assert not is_session_log('{"sessions": "none"}')

    assert migrate_legacy_notes('{"sessions":[]}', None, None).notes is None
    migrated = migrate_legacy_notes('{"sessions":[]}', time(9, 0), time(11, 0))
    assert migrated.sessions == (Session("09:00:00", "11:00:00"),)
    assert migrated.notes is None


def test_has_valid_times():
    assert has_valid_times([Session("09:00", "10:00:30"), Session("11:00:00")])
    assert not has_valid_times([Session("9am")])
    assert not has_valid_times([Session("09:00:00", "25:00:00")])
