import logging

import httpx
from pydantic import ValidationError

from app.client.form import TaxFormData
from app.client.payload_mapper import map_to_payload
from app.client.rate_limiter import RateLimiter
from app.client.result_cache import PersistentResultCache, payload_cache_key
from app.client.storage import DEFAULT_STORAGE_PATH, DeviceStorage
from app.errors import (
    AuthError,
    EstimateTimeoutError,
    ParseError,
    PayloadValidationError,
    UpstreamError,
)
from app.models import EstimateResult
from app.sanitizer import fill_breakdown
from app.validation import violations

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 60.0


class EstimateClient:
    """Device-side caller of POST /estimate

    Order per call: payload mapping, rate limit, local cache, network. The
    rate limit counts every attempt that reaches it, cache hits included.
    """

    def __init__(
        self,
        base_url: str,
        embed_token: str | None = None,
        storage: DeviceStorage | None = None,
        rate_limiter: RateLimiter | None = None,
        cache: PersistentResultCache | None = None,
        http_client: httpx.Client | None = None,
        locale_name: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        storage = storage or DeviceStorage(DEFAULT_STORAGE_PATH)
        self.base_url = base_url.rstrip("/")
        self.embed_token = embed_token
        self.rate_limiter = rate_limiter or RateLimiter(storage)
        self.cache = cache or PersistentResultCache(storage)
        self.http_client = http_client or httpx.Client(timeout=timeout)
        self.locale_name = locale_name
        self.timeout = timeout

    def close(self) -> None:
        self.http_client.close()

    def __enter__(self) -> "EstimateClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get_estimate(self, form: TaxFormData | dict) -> EstimateResult:
        try:
            payload = map_to_payload(form, self.locale_name)
        except ValidationError as e:
            raise PayloadValidationError(violations(e)) from e

        self.rate_limiter.check_and_record()
        key = payload_cache_key(payload)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logger.info("Requesting estimate for %s/%s", payload["filing_status"], payload["tax_year"])
        body, status_code = self._post(payload)
        result = self._parse_response(body, status_code, payload)
        self.cache.put(key, result)
        return result

    def _post(self, payload: dict) -> tuple[dict, int]:
        headers = {"Content-Type": "application/json"}
        if self.embed_token:
            headers["x-embed-token"] = self.embed_token
        try:
            response = self.http_client.post(
                f"{self.base_url}/estimate", json=payload, headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise EstimateTimeoutError(f"No response within {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            raise UpstreamError(str(e), detail=str(e)) from e

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(f"Non-JSON response ({response.status_code})") from e
        if not isinstance(body, dict):
            raise UpstreamError(f"Unexpected response ({response.status_code})")
        return body, response.status_code

    @staticmethod
    def _parse_response(body: dict, status_code: int, payload: dict) -> EstimateResult:
        if body.get("error") or status_code >= 400:
            # Raw model text stays in the server logs; it is never re-parsed here.
            logger.error("Backend error %s: %s", status_code, body.get("error"))
            if status_code == 400:
                raise PayloadValidationError(body.get("details") or [])
            if status_code == 401:
                raise AuthError()
            raise UpstreamError(str(body.get("error") or "Backend error."), detail=body.get("detail"))

        json_result = body.get("json_result")
        estimate = json_result.get("estimate") if isinstance(json_result, dict) else None
        if not isinstance(estimate, dict):
            raise ParseError("Backend returned invalid estimate. AI likely produced invalid JSON.")
        fill_breakdown({"estimate": estimate})

        try:
            return EstimateResult.model_validate(
                {
                    "json_result": {"estimate": estimate, "inputs": payload},
                    "summary": body.get("summary") or "",
                }
            )
        except ValidationError as e:
            raise ParseError("Backend returned invalid estimate.", detail=str(e)) from e
