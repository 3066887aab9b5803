"""Tests for log entry validation."""

from devlog.validator import first_invalid, is_valid_entry, normalize_entries


class TestIsValidEntry:
    def test_object_with_fields(self, sample_entry):
        assert is_valid_entry(sample_entry) is True

    def test_single_arbitrary_key(self):
        assert is_valid_entry({"anything": None}) is True

    def test_no_conventional_fields_required(self):
        assert is_valid_entry({"level": "debug"}) is True

    def test_empty_object_rejected(self):
        assert is_valid_entry({}) is False

    def test_null_rejected(self):
        assert is_valid_entry(None) is False

    def test_arrays_rejected(self):
        assert is_valid_entry([]) is False
        assert is_valid_entry([{"a": 1}]) is False

    def test_scalars_rejected(self):
        for value in ("text", "", 0, 1, 3.5, True, False):
            assert is_valid_entry(value) is False


class TestNormalizeEntries:
    def test_single_value_wrapped(self):
        assert normalize_entries({"a": 1}) == [{"a": 1}]

    def test_scalar_wrapped(self):
        assert normalize_entries(42) == [42]

    def test_array_passthrough(self):
        batch = [{"a": 1}, {"b": 2}]
        assert normalize_entries(batch) is batch


class TestFirstInvalid:
    def test_all_valid(self):
        assert first_invalid([{"a": 1}, {"b": 2}]) is None

    def test_reports_first_bad_index(self):
        assert first_invalid([{"a": 1}, {}, "x"]) == 1

    def test_empty_batch(self):
        assert first_invalid([]) is None
