"""Unit tests for the Intent Extractor."""

import json

import pytest

from stx_contract_builder.extractors import IntentExtractor, extract_params
from stx_contract_builder.extractors.intent_patterns import MAX_COUNT_DIGITS, MAX_PRINCIPALS
from stx_contract_builder.models.extraction import Deadline, ExtractedParams, Period


ESCROW_REQUEST = (
    "Escrow payment of 5 STX from SP1ABC... to SP2DEF... "
    "with arbiter SP3GHI... deadline 100 blocks"
)


@pytest.fixture
def extractor():
    return IntentExtractor()


class TestPrincipalExtraction:
    """Tests for address extraction."""

    def test_principals_in_order_of_appearance(self, extractor):
        params = extractor.extract(ESCROW_REQUEST)
        assert params.principals == ["SP1ABC...", "SP2DEF...", "SP3GHI..."]

    def test_testnet_and_mainnet_prefixes(self, extractor):
        params = extractor.extract("pay ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM and SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7")
        assert params.principals == [
            "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM",
            "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7",
        ]

    def test_pipe_is_not_a_principal_prefix(self, extractor):
        assert extractor.extract("S|ABC is not an address").principals == []

    @pytest.mark.parametrize("text", ["pay 5 STX now", "pay 5 STX.", "STX"])
    def test_currency_unit_is_not_a_principal(self, extractor, text):
        assert extractor.extract(text).principals == []

    def test_duplicates_are_kept(self, extractor):
        params = extractor.extract("ST1AAA pays ST1AAA")
        assert params.principals == ["ST1AAA", "ST1AAA"]

    def test_principals_capped(self, extractor):
        text = " ".join(f"ST{i}ADDR" for i in range(15))
        params = extractor.extract(text)
        assert len(params.principals) == MAX_PRINCIPALS
        assert params.principals[0] == "ST0ADDR"
        assert params.principals[-1] == "ST9ADDR"

    def test_custom_cap(self):
        params = IntentExtractor(max_principals=2).extract("ST1A ST2B ST3C")
        assert params.principals == ["ST1A", "ST2B"]


class TestNumericExtraction:
    """Tests for amounts, percentages and periods."""

    def test_amounts_are_loose(self, extractor):
        params = extractor.extract(ESCROW_REQUEST)
        # Digits inside addresses are picked up too; only the first is used downstream.
        assert params.amounts[0] == 5.0
        assert 100.0 in params.amounts

    def test_decimal_amount(self, extractor):
        assert extractor.extract("send 2.5 stx").amounts == [2.5]

    def test_percentages(self, extractor):
        params = extractor.extract("60% to alice and 40% to bob")
        assert params.percentages == [60, 40]

    def test_percentages_not_range_checked(self, extractor):
        assert extractor.extract("give 150% effort").percentages == [150]

    def test_blocks_period(self, extractor):
        params = extractor.extract(ESCROW_REQUEST)
        assert params.periods == [Period(blocks=100)]

    def test_days_before_blocks(self, extractor):
        params = extractor.extract("every 144 blocks or 30 days")
        assert params.periods == [Period(days=30), Period(blocks=144)]

    def test_only_first_match_of_each_unit(self, extractor):
        params = extractor.extract("3 days then 5 days")
        assert params.periods == [Period(days=3)]

    def test_deadlines_never_populated(self, extractor):
        assert extractor.extract("deadline at block 5000").deadlines == []


class TestKeywordExtraction:
    """Tests for keyword tagging."""

    def test_escrow_and_deadline(self, extractor):
        params = extractor.extract(ESCROW_REQUEST)
        assert "escrow" in params.keywords
        assert "deadline" in params.keywords

    def test_keyword_order_follows_vocabulary(self, extractor):
        params = extractor.extract("Monthly milestone delivery, share the escrow before it expires")
        assert params.keywords == ["escrow", "split", "subscription", "delivery", "deadline"]

    def test_case_insensitive(self, extractor):
        assert extractor.extract("SUBSCRIPTION").keywords == ["subscription"]

    def test_substring_matching(self, extractor):
        # "shared" contains "share"
        assert "split" in extractor.extract("a shared wallet").keywords


class TestTotality:
    """Extraction never fails and always returns every field."""

    @pytest.mark.parametrize("text", ["", "   ", "no numbers here", "%%%", "ST", None])
    def test_well_formed_result(self, extractor, text):
        params = extractor.extract(text)
        assert isinstance(params, ExtractedParams)
        for field_name in ("amounts", "principals", "percentages", "periods", "deadlines", "keywords"):
            assert isinstance(getattr(params, field_name), list)

    def test_huge_digit_run(self, extractor):
        params = extractor.extract("every " + "9" * 5000 + " days")
        assert params.periods == []
        assert params.amounts == []
        assert params.keywords == []

    def test_overlong_block_count_skipped_day_count_kept(self, extractor):
        params = extractor.extract("2 days, " + "1" * 40 + " blocks")
        assert params.periods == [Period(days=2)]

    def test_count_digit_limit(self, extractor):
        largest = "9" * MAX_COUNT_DIGITS
        assert extractor.extract(largest + " blocks").periods == [Period(blocks=int(largest))]
        assert extractor.extract("0" * 50 + "7 blocks").periods == [Period(blocks=7)]

    def test_module_level_helper(self):
        assert extract_params("split 50% 50%").percentages == [50, 50]


class TestSerialization:
    """Tests for JSON serialization."""

    def test_serialize_omits_missing_period_fields(self, extractor):
        data = json.loads(extractor.serialize(extractor.extract("every 10 blocks")))
        assert data["periods"] == [{"blocks": 10}]

    def test_deserialize(self, extractor):
        params = extractor.deserialize(json.dumps({
            "amounts": [1.5],
            "principals": ["ST1A"],
            "percentages": [60, 40],
            "periods": [{"days": 2}],
            "deadlines": [{"block_height": 1000}],
            "keywords": ["split"],
        }))
        assert params.amounts == [1.5]
        assert params.periods == [Period(days=2)]
        assert params.deadlines == [Deadline(block_height=1000)]
        assert params.has_keyword("split")

    def test_deserialize_missing_fields_default_to_empty(self, extractor):
        params = extractor.deserialize("{}")
        assert params.principals == []
        assert params.deadlines == []

    def test_deserialize_invalid_json(self, extractor):
        with pytest.raises(ValueError, match="Invalid JSON"):
            extractor.deserialize("{not json")

    def test_deserialize_rejects_non_object(self, extractor):
        with pytest.raises(ValueError):
            extractor.deserialize("[1, 2]")

    def test_deserialize_rejects_non_list_field(self, extractor):
        with pytest.raises(ValueError, match="principals"):
            extractor.deserialize(json.dumps({"principals": "ST1A"}))
