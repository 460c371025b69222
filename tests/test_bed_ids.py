"""Tests for bed id parsing and generation."""

from types import SimpleNamespace

from wardflow.allocation.bed_ids import format_bed_id, generate_new_bed_id, parse_bed_number


def ids(*values):
    return [SimpleNamespace(id=v) for v in values]


class TestParseBedNumber:
    """Test bed id parsing."""

    def test_parses_padded_number(self):
        assert parse_bed_number("BED-07") == 7

    def test_parses_three_digits(self):
        assert parse_bed_number("BED-120") == 120

    def test_any_ward_tag_counts(self):
        assert parse_bed_number("ICU-01") == 1
        assert parse_bed_number("ward-15") == 15

    def test_rejects_other_schemes(self):
        assert parse_bed_number("temp") is None
        assert parse_bed_number("3B-02") is None
        assert parse_bed_number("BED-") is None
        assert parse_bed_number("BED-1a") is None


class TestGenerateNewBedId:
    """Test next bed id generation."""

    def test_max_plus_one_not_count(self):
        """Gaps are not refilled: 01, 02, 09 gives 10."""
        assert generate_new_bed_id(ids("BED-01", "BED-02", "BED-09")) == "BED-10"

    def test_empty_starts_at_one(self):
        assert generate_new_bed_id([]) == "BED-01"

    def test_malformed_ids_ignored(self):
        assert generate_new_bed_id(ids("BED-03", "BED-9x", "temp")) == "BED-04"

    def test_other_ward_tags_push_the_counter(self):
        """Imported ICU-15 is counted, so the next bed is BED-16."""
        assert generate_new_bed_id(ids("BED-01", "ICU-15")) == "BED-16"
        assert generate_new_bed_id(ids("WARD-99", "BED-03")) == "BED-100"

    def test_only_malformed_ids(self):
        assert generate_new_bed_id(ids("X", "Y")) == "BED-01"

    def test_demo_state_next_id(self, demo_state):
        assert generate_new_bed_id(demo_state.beds) == "BED-21"

    def test_format_keeps_two_digits_minimum(self):
        assert format_bed_id(3) == "BED-03"
        assert format_bed_id(100) == "BED-100"
