"""
Tests for asset reference encoding/decoding.

Run with: pytest tests/test_asset_ref.py -v
"""
import logging

import pytest

from core.asset_ref import AssetRef, InvalidAssetRefError, encode_asset_ref, parse_asset_ref


class TestEncodeAssetRef:
    """Tests for building reference strings."""

    def test_joins_with_colon(self):
        """Asset and question ids are joined by a single colon."""
        assert encode_asset_ref("a1", "q1") == "a1:q1"

    @pytest.mark.parametrize(
        "asset_id,question_id",
        [("a1", "q1"), ("mcq_1700000000000_abc1234", "q_1700000000000_zz9"), ("", "q1")],
    )
    def test_decodes_back(self, asset_id, question_id):
        """Colon-free ids survive a round trip."""
        assert parse_asset_ref(encode_asset_ref(asset_id, question_id)) == (asset_id, question_id)

    def test_rejects_colon_in_asset_id(self):
        """A colon in the asset id would make the reference ambiguous."""
        with pytest.raises(InvalidAssetRefError):
            encode_asset_ref("a:1", "q1")

    def test_rejects_colon_in_question_id(self):
        with pytest.raises(InvalidAssetRefError):
            encode_asset_ref("a1", "q:1")

    def test_error_is_value_error(self):
        """Callers catching ValueError also catch invalid refs."""
        with pytest.raises(ValueError):
            encode_asset_ref("a1", "q:1")


class TestParseAssetRef:
    """Tests for decoding reference strings."""

    @pytest.mark.parametrize("ref", [None, "", "no-colon-here"])
    def test_no_reference(self, ref):
        """Empty values and values without a separator are not references."""
        assert parse_asset_ref(ref) is None

    def test_named_fields(self):
        ref = parse_asset_ref("a1:q1")
        assert ref.asset_id == "a1"
        assert ref.question_id == "q1"

    def test_empty_components_allowed(self):
        """Only the separator is required."""
        assert parse_asset_ref(":q1") == ("", "q1")
        assert parse_asset_ref("a1:") == ("a1", "")

    def test_extra_separators_are_dropped(self, caplog):
        """Decoding keeps the first two segments and warns about the rest."""
        with caplog.at_level(logging.WARNING, logger="core.asset_ref"):
            ref = parse_asset_ref("a:b:c")

        assert ref == ("a", "b")
        assert "Lossy asset reference" in caplog.text


class TestAssetRefTuple:
    def test_encode_and_parse(self):
        ref = AssetRef("a1", "q1")
        assert ref.encode() == "a1:q1"
        assert AssetRef.parse("a1:q1") == ref
