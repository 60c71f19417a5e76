import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.webhooks import router as webhooks_router
from app.core.config import Settings, settings
from app.core.runtime import build_runtime
from app.middleware.correlation_id import CorrelationIdFilter, CorrelationIdMiddleware
from app.middleware.rate_limit import RateLimitMiddleware

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s"

app = FastAPI(title="Servicio24 Intake Bot")

# Only Meta's callbacks are public; health probes stay unthrottled
app.add_middleware(RateLimitMiddleware, rate_limited_paths=["/webhooks"])
app.add_middleware(CorrelationIdMiddleware)


def configure_logging() -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())


def production_problems(cfg: Settings) -> list[str]:
    problems = []
    if not cfg.whatsapp_app_secret:
        problems.append("WHATSAPP_APP_SECRET is required in production (X-Hub-Signature-256 checks)")
    if not cfg.supabase_enabled:
        problems.append("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must both be set; leads would only reach the backup file")
    return problems


def validate_production_settings() -> None:
    if settings.app_env != "production":
        return
    if settings.whatsapp_dry_run:
        logger.warning("WHATSAPP_DRY_RUN is on in production: no message will leave the server")
    problems = production_problems(settings)
    if problems:
        message = "Production environment validation failed:\n" + "\n".join(f"  - {p}" for p in problems)
        logger.error(message)
        raise RuntimeError(message)


@app.on_event("startup")
async def startup_event():
    configure_logging()
    validate_production_settings()

    runtime = build_runtime(settings)
    await runtime.start()
    app.state.runtime = runtime

    logger.info(
        f"Started env={settings.app_env} redis={bool(settings.redis_url)} "
        f"supabase={settings.supabase_enabled} delivery={settings.delivery_mode} "
        f"dry_run={settings.whatsapp_dry_run}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    runtime = getattr(app.state, "runtime", None)
    if runtime is not None:
        await runtime.close()
        app.state.runtime = None


@app.get("/health")
def health():
    """Liveness: answers without touching Redis or Supabase."""
    return {
        "ok": True,
        "integrations": {
            "redis": bool(settings.redis_url),
            "supabase": settings.supabase_enabled,
            "delivery_mode": settings.delivery_mode,
            "whatsapp_dry_run": settings.whatsapp_dry_run,
        },
    }


def _not_ready(**detail) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"ok": False, **detail})


@app.get("/ready")
async def ready(request: Request):
    """Readiness: 503 until the runtime exists and its Redis (if any) answers PING."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        return _not_ready(error="runtime not initialised")
    try:
        redis_ok = await runtime.ping_redis()
    except Exception as e:
        logger.error(f"Readiness probe could not reach Redis: {e}")
        return _not_ready(redis="disconnected", error=str(e))
    return {"ok": True, "redis": "memory" if redis_ok is None else "connected"}


app.include_router(webhooks_router, prefix="/webhooks")
