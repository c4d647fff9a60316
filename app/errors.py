class EstimateError(Exception):
    """Base class for every failure of the estimate pipeline"""
    status_code = 500
    error = "Estimate failed"
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, detail=None, raw: str | None = None):
        super().__init__(message or self.error)
        self.detail = detail
        self.raw = raw

    def to_body(self) -> dict:
        body = {"error": self.error}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class PayloadValidationError(EstimateError):
    status_code = 400
    error = "Invalid payload"

    def __init__(self, violations: list[dict]):
        super().__init__(f"{len(violations)} invalid field(s)")
        self.violations = violations

    def to_body(self) -> dict:
        return {"error": self.error, "details": self.violations}


class AuthError(EstimateError):
    status_code = 401
    error = "Unauthorized"


class OriginNotAllowedError(EstimateError):
    status_code = 403
    error = "CORS blocked"


class ExtractionError(EstimateError):
    """The model text contains no JSON object"""
    error = "AI returned no valid JSON"

    def to_body(self) -> dict:
        return {"error": self.error, "raw": self.raw}


class ParseError(EstimateError):
    """A JSON-shaped candidate was found but did not parse, even after repair"""
    error = "AI JSON parse failed"

    def to_body(self) -> dict:
        return {"error": self.error, "detail": self.detail, "raw": self.raw}


class UpstreamError(EstimateError):
    error = "Upstream error"


class RateLimitError(EstimateError):
    status_code = 429
    error = "Too many requests"
    user_message = "Too many requests. Please wait a moment."


class EstimateTimeoutError(EstimateError, TimeoutError):
    status_code = 504
    error = "Request timed out"
