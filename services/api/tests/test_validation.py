"""
Tests for validation functions.

Run with: pytest tests/test_validation.py -v
"""
import json

import pytest

from core.errors import InvalidInput
from core.validation import (
    ANNOTATION_TYPES,
    MAX_REVISION_NUMBER,
    clamp_pagination,
    parse_annotations,
    parse_release_status,
    parse_revision_number,
)
from models import ReleaseStatus


class TestParseAnnotations:
    """Tests for annotation payload validation."""

    def test_valid_json_string(self):
        """A JSON array of markup objects decodes to a list."""
        raw = json.dumps([
            {"type": "highlight", "page": 1, "rect": [0, 0, 10, 10]},
            {"type": "note", "text": "check weld size"},
        ])
        result = parse_annotations(raw)
        assert len(result) == 2
        assert result[1]["text"] == "check weld size"

    def test_already_decoded_list(self):
        """Pre-decoded lists are accepted as-is."""
        assert parse_annotations([{"type": "pen"}]) == [{"type": "pen"}]

    def test_empty_array_is_valid(self):
        """An empty array is present, just empty."""
        assert parse_annotations("[]") == []

    def test_objects_without_type(self):
        """`type` is optional."""
        assert parse_annotations('[{"x": 1}]') == [{"x": 1}]

    def test_all_known_types(self):
        """Every known markup kind passes."""
        payload = [{"type": t} for t in sorted(ANNOTATION_TYPES)]
        assert parse_annotations(payload) == payload

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing(self, raw):
        """Missing payload should raise."""
        with pytest.raises(InvalidInput) as exc:
            parse_annotations(raw)
        assert exc.value.status_code == 400

    def test_invalid_json(self):
        """Malformed JSON should raise."""
        with pytest.raises(InvalidInput):
            parse_annotations("[{not json")

    @pytest.mark.parametrize("raw", ['{"type": "pen"}', '"text"', "42"])
    def test_not_an_array(self, raw):
        """Top level must be an array."""
        with pytest.raises(InvalidInput):
            parse_annotations(raw)

    def test_non_object_element(self):
        """Array elements must be objects."""
        with pytest.raises(InvalidInput) as exc:
            parse_annotations('[{"type": "pen"}, 3]')
        assert "annotations[1]" in exc.value.message

    def test_unknown_type(self):
        """Unknown markup kinds should raise."""
        with pytest.raises(InvalidInput) as exc:
            parse_annotations('[{"type": "laser"}]')
        assert "laser" in exc.value.message


class TestParseRevisionNumber:
    """Tests for revision number coercion."""

    @pytest.mark.parametrize("raw", [None, "", "  "])
    def test_defaults_to_one(self, raw):
        assert parse_revision_number(raw) == 1

    @pytest.mark.parametrize("raw,expected", [("1", 1), ("7", 7), (" 12 ", 12), (3, 3)])
    def test_positive_integers(self, raw, expected):
        assert parse_revision_number(raw) == expected

    @pytest.mark.parametrize("raw", ["0", "-1", "abc", "1.5", 0, -4, True])
    def test_rejects_non_positive_or_non_integer(self, raw):
        with pytest.raises(InvalidInput):
            parse_revision_number(raw)

    def test_upper_bound(self):
        assert parse_revision_number(str(MAX_REVISION_NUMBER)) == MAX_REVISION_NUMBER

    @pytest.mark.parametrize("raw", ["99999999999999999999", MAX_REVISION_NUMBER + 1, 2**63])
    def test_rejects_oversized(self, raw):
        with pytest.raises(InvalidInput):
            parse_revision_number(raw)


class TestParseReleaseStatus:
    """Tests for the release status whitelist."""

    def test_valid_values(self):
        assert parse_release_status("Partially Released") is ReleaseStatus.PARTIALLY_RELEASED
        assert parse_release_status("Yet to Be Released") is ReleaseStatus.YET_TO_BE_RELEASED

    @pytest.mark.parametrize("raw", [
        "Somewhere Else",
        "partially released",
        "YET TO BE RELEASED",
        " Partially Released",
        "",
        None,
    ])
    def test_rejects_anything_else(self, raw):
        """Exact, case-sensitive match only."""
        with pytest.raises(InvalidInput) as exc:
            parse_release_status(raw)
        assert exc.value.status_code == 400


class TestClampPagination:
    """Tests for page/pageSize clamping."""

    def test_defaults(self):
        assert clamp_pagination(None, None) == (1, 20)
        assert clamp_pagination(None, None, default_page_size=50) == (1, 50)

    def test_page_floor(self):
        assert clamp_pagination(0, 10) == (1, 10)
        assert clamp_pagination(-3, 10) == (1, 10)

    def test_page_size_bounds(self):
        assert clamp_pagination(2, 0) == (2, 1)
        assert clamp_pagination(2, 1000) == (2, 100)
        assert clamp_pagination(2, 1000, max_page_size=250) == (2, 250)
