import pytest

from app.errors import ExtractionError, ParseError
from app.models import EstimateRequest
from app.sanitizer import (
    extract_json_candidate,
    fill_breakdown,
    normalize_quotes,
    remove_trailing_commas,
    sanitize_model_response,
    sanitize_model_text,
    strip_code_fences,
)

REQUEST = EstimateRequest(filing_status="single", w2_wages=50000, federal_withholding=6000)


class TestRepairSteps:
    """Each repair step on its own"""

    def test_strip_fences_with_and_without_language_tag(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '\n{"a": 1}\n'
        assert strip_code_fences('```\n{"a": 1}```') == '\n{"a": 1}'

    def test_extract_takes_first_open_and_last_close(self):
        text = 'prose {"a": {"b": 1}} more prose {"c": 2} end'
        assert extract_json_candidate(text, text) == '{"a": {"b": 1}} more prose {"c": 2}'

    def test_extract_without_closing_brace(self):
        with pytest.raises(ExtractionError):
            extract_json_candidate('{"a": 1', '{"a": 1')

    def test_trailing_commas(self):
        assert remove_trailing_commas('{"a": [1, 2, ], "b": 3,\n}') == '{"a": [1, 2], "b": 3}'

    def test_single_quotes_become_double(self):
        assert normalize_quotes("{'a': 'b'}") == '{"a": "b"}'


class TestSanitizeModelText:
    def test_fenced_object_with_trailing_comma(self):
        raw = '```json\n{"refund_low": 100, "refund_high": 200,}\n```'

        tree = sanitize_model_text(raw)

        assert tree['refund_low'] == 100
        assert tree['refund_high'] == 200

    def test_no_brace_is_extraction_error(self):
        raw = "The refund is about two hundred dollars."

        with pytest.raises(ExtractionError) as exc_info:
            sanitize_model_text(raw)

        assert exc_info.value.raw == raw
        assert not isinstance(exc_info.value, ParseError)

    def test_broken_json_is_parse_error_with_raw_text(self):
        raw = '```json\n{"refund_low": 100 "refund_high": 200}\n```'

        with pytest.raises(ParseError) as exc_info:
            sanitize_model_text(raw)

        assert exc_info.value.raw == raw
        assert exc_info.value.detail

    def test_single_quoted_reply(self):
        tree = sanitize_model_text("{'refund_low': 10, 'refund_high': 20}")

        assert tree['refund_high'] == 20

    def test_apostrophe_in_summary_breaks_parsing(self):
        # Known gap of the blind quote replace.
        raw = '{"estimate": {"refund_low": 1, "refund_high": 2}, "summary": "You\'ll get a refund."}'

        with pytest.raises(ParseError):
            sanitize_model_text(raw)

    def test_missing_credits_are_zero(self):
        tree = sanitize_model_text(
            '{"json_result": {"estimate": {"refund_low": 5, "refund_high": 9, "breakdown": {"agi": 100}}}}'
        )

        breakdown = tree['json_result']['estimate']['breakdown']
        assert breakdown['agi'] == 100
        assert breakdown['credits'] == {
            "ctc_nonrefundable": 0,
            "ctc_refundable": 0,
            "odc": 0,
            "eitc": 0,
        }

    def test_null_figures_are_zero(self):
        tree = fill_breakdown(
            {"estimate": {"breakdown": {"se_tax": None, "credits": {"eitc": None, "odc": 500}}}}
        )

        breakdown = tree['estimate']['breakdown']
        assert breakdown['se_tax'] == 0
        assert breakdown['credits']['eitc'] == 0
        assert breakdown['credits']['odc'] == 500


class TestSanitizeModelResponse:
    """Projection of the repaired tree into EstimateResult"""

    def test_flat_estimate_object(self):
        result = sanitize_model_response('{"refund_low": 100, "refund_high": 200,}', REQUEST)

        assert result.json_result.estimate.refund_low == 100
        assert result.json_result.estimate.breakdown.total_tax == 0
        assert result.summary == ""

    def test_inputs_come_from_request(self):
        raw = '{"json_result": {"estimate": {"refund_low": 1, "refund_high": 2}, "inputs": {"w2_wages": 1}}}'

        result = sanitize_model_response(raw, REQUEST)

        assert result.json_result.inputs['w2_wages'] == 50000

    def test_missing_refund_range_is_parse_error(self):
        raw = '{"json_result": {"estimate": {"breakdown": {}}}, "summary": "ok"}'

        with pytest.raises(ParseError) as exc_info:
            sanitize_model_response(raw, REQUEST)

        assert "refund_low" in exc_info.value.detail
        assert exc_info.value.raw == raw

    def test_non_numeric_figure_is_parse_error(self):
        raw = '{"estimate": {"refund_low": "a lot", "refund_high": 2}}'

        with pytest.raises(ParseError):
            sanitize_model_response(raw, REQUEST)

    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_json_number_tokens_are_parse_errors(self, token):
        raw = f'{{"refund_low": {token}, "refund_high": 200}}'

        with pytest.raises(ParseError) as exc_info:
            sanitize_model_text(raw)

        assert exc_info.value.raw == raw

    def test_overflowing_number_is_parse_error(self):
        raw = '{"estimate": {"refund_low": 1e400, "refund_high": 2}}'

        with pytest.raises(ParseError) as exc_info:
            sanitize_model_response(raw, REQUEST)

        assert "refund_low" in exc_info.value.detail

    def test_overflowing_breakdown_figure_is_parse_error(self):
        raw = '{"estimate": {"refund_low": 1, "refund_high": 2, "breakdown": {"credits": {"eitc": -1e999}}}}'

        with pytest.raises(ParseError):
            sanitize_model_response(raw, REQUEST)
