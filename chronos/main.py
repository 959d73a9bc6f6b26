import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from .api import jobs as jobs_api
from .metrics import metrics_response, request_latency_seconds


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # the provider client is built lazily on first use
    await jobs_api.close_manager()


app = FastAPI(title="Chronos Cron Control Plane", lifespan=lifespan)

app.include_router(jobs_api.router)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        return response
    finally:
        request_latency_seconds.observe(time.time() - start)


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "chronos-cronjobs"}


@app.get("/readyz")
async def readyz():
    # readiness only checks that provider credentials are configured
    return {"ready": jobs_api.provider_configured()}


@app.get("/metrics")
async def metrics():
    return metrics_response()
