"""
Repair chain that turns untrusted model text into an EstimateResult.

The steps run in a fixed order and each one is a pure text transform:
fence removal, outer-object extraction, trailing-comma removal, quote
normalization, JSON parsing and finally zero-filling of the breakdown.
Extraction and parse failures are terminal and keep the raw model text.
"""
import json
import logging
import re

from pydantic import ValidationError

from app.errors import ExtractionError, ParseError
from app.models import EstimateRequest, EstimateResult

logger = logging.getLogger(__name__)

BREAKDOWN_FIELDS = (
    "agi",
    "standard_deduction",
    "taxable_income",
    "tentative_tax",
    "se_tax",
    "total_credits",
    "total_tax",
    "refundable_credits",
    "withholding",
)
CREDIT_FIELDS = ("ctc_nonrefundable", "ctc_refundable", "odc", "eitc")

_FENCE = re.compile(r"```[\w-]*")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text)


def extract_json_candidate(text: str, raw: str) -> str:
    # First "{" to last "}", not the innermost balanced pair.
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ExtractionError("No JSON object found in model output", raw=raw)
    return text[start:end + 1]


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def normalize_quotes(text: str) -> str:
    # Blind replace: apostrophes inside string values get converted too.
    return text.replace("'", '"')


def _reject_constant(token: str):
    raise ValueError(f"{token} is not valid JSON")


def parse_json(text: str, raw: str) -> dict:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(str(e), detail=str(e), raw=raw) from e


def _locate_estimate(tree: dict) -> dict | None:
    container = tree.get("json_result", tree)
    if not isinstance(container, dict):
        return None
    estimate = container.get("estimate", container)
    return estimate if isinstance(estimate, dict) else None


def fill_breakdown(tree: dict) -> dict:
    """Set every missing or null breakdown figure (credits included) to zero"""
    estimate = _locate_estimate(tree)
    if estimate is None:
        return tree

    breakdown = estimate.get("breakdown")
    if not isinstance(breakdown, dict):
        breakdown = estimate["breakdown"] = {}
    for name in BREAKDOWN_FIELDS:
        if breakdown.get(name) is None:
            breakdown[name] = 0

    credits = breakdown.get("credits")
    if not isinstance(credits, dict):
        credits = breakdown["credits"] = {}
    for name in CREDIT_FIELDS:
        if credits.get(name) is None:
            credits[name] = 0
    return tree


def sanitize_model_text(raw: str) -> dict:
    """Run the repair chain over raw model text and return the parsed tree"""
    text = strip_code_fences(raw)
    try:
        text = extract_json_candidate(text, raw)
    except ExtractionError:
        logger.error("No JSON object found in model output")
        raise
    text = remove_trailing_commas(text)
    text = normalize_quotes(text)
    try:
        tree = parse_json(text, raw)
    except ParseError:
        logger.error("JSON parse error after repair: %s", text)
        raise
    return fill_breakdown(tree)


def to_estimate_result(tree: dict, request: EstimateRequest, raw: str | None = None) -> EstimateResult:
    """Project a parsed tree into the typed result; inputs come from the request, never the model"""
    estimate = _locate_estimate(tree)
    summary = tree.get("summary")
    try:
        return EstimateResult.model_validate(
            {
                "json_result": {"estimate": estimate, "inputs": request.model_inputs()},
                "summary": summary if isinstance(summary, str) else "",
            }
        )
    except ValidationError as e:
        detail = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise ParseError(detail, detail=detail, raw=raw if raw is not None else json.dumps(tree)) from e


def sanitize_model_response(raw: str, request: EstimateRequest) -> EstimateResult:
    return to_estimate_result(sanitize_model_text(raw), request, raw)
