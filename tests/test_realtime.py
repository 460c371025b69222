"""Tests for change-feed merging."""

import pytest

from wardflow.core.entities import AcuityLevel, ChangeKind
from wardflow.core.models import Bed, Patient, RecordValidationError
from wardflow.state.persistence import ChangeEvent
from wardflow.state.realtime import apply_change, merge_change
from wardflow.state.snapshot import HospitalState


def bed_record(bed_id="BED-01", **changes):
    record = {"id": bed_id, "ward": "ICU", "required_skill_level": 9,
              "is_occupied": False, "is_reserved": False}
    record.update(changes)
    return record


class TestMergeChange:
    """Test per-collection merge rules."""

    def test_insert_appends(self):
        beds = (Bed("BED-01", "ICU", 9),)
        merged = merge_change(beds, ChangeEvent(ChangeKind.INSERT, bed_record("BED-02")), Bed)
        assert [b.id for b in merged] == ["BED-01", "BED-02"]

    def test_duplicate_insert_is_noop(self):
        """An insert already applied optimistically is not duplicated."""
        beds = (Bed("BED-01", "ICU", 9),)
        event = ChangeEvent(ChangeKind.INSERT, bed_record("BED-01", is_reserved=True))
        merged = merge_change(beds, event, Bed)
        assert merged is beds
        assert merged[0].is_reserved is False

    def test_update_replaces_only_match(self):
        beds = (Bed("BED-01", "ICU", 9), Bed("BED-02", "ICU", 9))
        event = ChangeEvent(ChangeKind.UPDATE, bed_record("BED-02", is_reserved=True))
        merged = merge_change(beds, event, Bed)
        assert merged[0] is beds[0]
        assert merged[1].is_reserved is True

    def test_update_unknown_id_is_noop(self):
        beds = (Bed("BED-01", "ICU", 9),)
        event = ChangeEvent(ChangeKind.UPDATE, bed_record("BED-09"))
        assert merge_change(beds, event, Bed) is beds

    def test_delete_removes(self):
        beds = (Bed("BED-01", "ICU", 9), Bed("BED-02", "ICU", 9))
        merged = merge_change(beds, ChangeEvent(ChangeKind.DELETE, {"id": "BED-01"}), Bed)
        assert [b.id for b in merged] == ["BED-02"]

    def test_delete_without_id(self):
        with pytest.raises(RecordValidationError):
            merge_change((), ChangeEvent(ChangeKind.DELETE, {}), Bed)

    def test_last_write_wins(self):
        beds = (Bed("BED-01", "ICU", 9),)
        for reserved in (True, False, True):
            beds = merge_change(
                beds, ChangeEvent(ChangeKind.UPDATE, bed_record(is_reserved=reserved)), Bed
            )
        assert beds[0].is_reserved is True


class TestApplyChange:
    """Test snapshot-level merge."""

    def test_routes_to_table(self):
        state = HospitalState()
        record = {"id": "P1", "name": "A", "acuity_score": 2}
        new_state = apply_change(state, ChangeEvent(ChangeKind.INSERT, record, "patients"))
        assert new_state.patient("P1").acuity_score == AcuityLevel.MEDIUM
        assert state.patients == ()

    def test_unknown_table_ignored(self):
        state = HospitalState()
        assert apply_change(state, ChangeEvent(ChangeKind.INSERT, {"id": "x"}, "rooms")) is state

    def test_invalid_record_rejected(self):
        """A pushed record that breaks an invariant leaves the snapshot as is."""
        state = HospitalState(patients=(Patient("P1", "A", AcuityLevel.LOW),))
        bad = {"id": "P1", "acuity_score": 1, "status": "Waiting", "assigned_bed_id": "BED-01"}
        assert apply_change(state, ChangeEvent(ChangeKind.UPDATE, bad, "patients")) is state


class TestChangeEventPayload:
    """Test wire payload parsing."""

    def test_insert_uses_new(self):
        event = ChangeEvent.from_payload({"eventType": "INSERT", "new": {"id": "A"}}, "beds")
        assert event.kind == ChangeKind.INSERT
        assert event.record == {"id": "A"}
        assert event.table == "beds"

    def test_delete_uses_old(self):
        event = ChangeEvent.from_payload(
            {"eventType": "delete", "old": {"id": "A"}, "table": "staff"}
        )
        assert event.kind == ChangeKind.DELETE
        assert event.table == "staff"

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown"):
            ChangeEvent.from_payload({"eventType": "TRUNCATE"})

    def test_missing_record(self):
        with pytest.raises(ValueError, match="no 'new'"):
            ChangeEvent.from_payload({"eventType": "UPDATE"})
