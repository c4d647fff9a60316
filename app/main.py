import json
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.cache import ResultCache
from app.config import Settings
from app.errors import AuthError, EstimateError, OriginNotAllowedError, PayloadValidationError
from app.model_gateways.model_gateway import ModelGateway
from app.model_gateways.openai_model_gateway import OpenAIModelGateway
from app.models import EstimateRequest, EstimateResult
from app.prompts import build_estimate_prompt
from app.sanitizer import sanitize_model_response
from app.validation import cache_key, validate_payload

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

OPEN_PATHS = {"/healthz"}


def get_cache(request: Request) -> ResultCache:
    return request.app.state.result_cache


def get_gateway(request: Request) -> ModelGateway:
    return request.app.state.model_gateway


def run_estimate(
    payload: EstimateRequest, cache: ResultCache, gateway: ModelGateway
) -> EstimateResult:
    """Cache lookup, then model call and repair; only successful results are cached"""
    key = cache_key(payload)
    cached = cache.get(key)
    if cached is not None:
        logger.info("Cache hit for %s/%s", payload.filing_status.value, payload.tax_year)
        return cached

    raw = gateway.generate(build_estimate_prompt(payload))
    result = sanitize_model_response(raw, payload)
    cache.put(key, result)
    return result


def create_app(
    settings: Settings | None = None,
    gateway: ModelGateway | None = None,
    cache: ResultCache | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="Tax Refund Estimator")
    app.state.settings = settings
    app.state.model_gateway = gateway or OpenAIModelGateway(settings)
    app.state.result_cache = cache or ResultCache(ttl_seconds=settings.cache_ttl_seconds)

    @app.middleware("http")
    async def guard(request: Request, call_next):
        if request.method == "OPTIONS" or request.url.path in OPEN_PATHS:
            return await call_next(request)

        origin = request.headers.get("origin")
        if origin and settings.allowed_origins and origin not in settings.allowed_origins:
            logger.warning("Blocked request from origin %s", origin)
            error = OriginNotAllowedError()
            return JSONResponse(error.to_body(), status_code=error.status_code)

        if settings.embed_token and request.headers.get("x-embed-token") != settings.embed_token:
            error = AuthError()
            return JSONResponse(error.to_body(), status_code=error.status_code)

        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "x-embed-token"],
    )

    @app.exception_handler(EstimateError)
    async def estimate_error_handler(request: Request, exc: EstimateError):
        if exc.raw is not None:
            logger.error("%s: %s | raw: %s", exc.error, exc, exc.raw)
        elif exc.status_code >= 500:
            logger.error("%s: %s", exc.error, exc)
        return JSONResponse(exc.to_body(), status_code=exc.status_code)

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz():
        return "ok"

    @app.post("/estimate", response_model=EstimateResult)
    async def estimate(
        request: Request,
        cache: ResultCache = Depends(get_cache),
        gateway: ModelGateway = Depends(get_gateway),
    ):
        """Validate the form payload and return the model's refund estimate"""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise PayloadValidationError(
                [{"loc": [], "msg": "Request body is not valid JSON", "type": "json_invalid"}]
            )

        payload = validate_payload(body, request.headers.get("accept-language"))
        return await run_in_threadpool(run_estimate, payload, cache, gateway)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
