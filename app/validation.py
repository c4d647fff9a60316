import json

from pydantic import ValidationError

from app.errors import PayloadValidationError
from app.models import EstimateRequest


def resolve_language(requested, accept_language: str | None) -> str:
    """Body language wins over the Accept-Language header; anything not Spanish is English"""
    candidate = requested if isinstance(requested, str) and requested else (accept_language or "")
    return "es" if candidate.lower().startswith("es") else "en"


def violations(error: ValidationError) -> list[dict]:
    return [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in error.errors()]


def validate_payload(body, accept_language: str | None = None) -> EstimateRequest:
    """Validate an untyped request body into a fully-defaulted EstimateRequest

    Raises PayloadValidationError carrying every violation, in field order.
    """
    if not isinstance(body, dict):
        raise PayloadValidationError(
            [{"loc": [], "msg": "Request body must be a JSON object", "type": "dict_type"}]
        )

    fields = {key: value for key, value in body.items() if key != "language"}
    fields["language"] = resolve_language(body.get("language"), accept_language)
    try:
        return EstimateRequest.model_validate(fields)
    except ValidationError as e:
        raise PayloadValidationError(violations(e)) from e


def cache_key(request: EstimateRequest) -> str:
    """Canonical, order-independent key for a validated request and its language"""
    return json.dumps(request.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
