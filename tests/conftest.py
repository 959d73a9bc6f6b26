import os
from typing import Any, Dict, List, Tuple

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

os.environ.setdefault("API_KEY", "dev-key")

from chronos.manager import CronJobManager

API_KEY = "test-api-key"
PROVIDER_URL = "http://provider.test"


class FakeProvider:
    """In-process stand-in for the scheduling provider's HTTP API."""

    def __init__(self):
        self.jobs: Dict[int, Dict[str, Any]] = {}
        self.history: Dict[int, List[Dict[str, Any]]] = {}
        self.next_id = 1
        # statuses returned, in order, instead of handling the next requests
        self.failures: List[int] = []
        self.requests: List[Tuple[str, str]] = []
        self.query: List[Dict[str, str]] = []
        self.payloads: List[Dict[str, Any]] = []
        self.app = self._build_app()

    def add_job(self, **job: Any) -> int:
        job_id = self.next_id
        self.next_id += 1
        job.setdefault("enabled", True)
        job.setdefault("requestMethod", "GET")
        job.setdefault(
            "schedule",
            {"timezone": "UTC", "minutes": [0], "hours": [9], "mdays": [], "months": [], "wdays": [1]},
        )
        self.jobs[job_id] = {**job, "jobId": job_id}
        return job_id

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r == (method, path))

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        provider = self

        @app.middleware("http")
        async def inject(request: Request, call_next):
            provider.requests.append((request.method, request.url.path))
            provider.query.append(dict(request.query_params))
            if request.headers.get("authorization") != f"Bearer {API_KEY}":
                return JSONResponse(status_code=401, content={"message": "Unauthorized"})
            if provider.failures:
                status = provider.failures.pop(0)
                return JSONResponse(status_code=status, content={"message": f"Injected {status}"})
            return await call_next(request)

        def missing(job_id: int) -> JSONResponse:
            return JSONResponse(status_code=404, content={"message": f"Job {job_id} not found"})

        @app.put("/jobs")
        async def create(request: Request):
            payload = await request.json()
            provider.payloads.append(payload)
            job_id = provider.add_job(**payload["job"])
            return {"jobId": job_id}

        @app.get("/jobs")
        async def list_jobs(page: int = 1, limit: int = 50):
            jobs = list(provider.jobs.values())
            return {"jobs": jobs[(page - 1) * limit: page * limit]}

        @app.get("/jobs/{job_id}")
        async def get(job_id: int):
            if job_id not in provider.jobs:
                return missing(job_id)
            return {"job": provider.jobs[job_id]}

        @app.patch("/jobs/{job_id}")
        async def update(job_id: int, request: Request):
            if job_id not in provider.jobs:
                return missing(job_id)
            payload = await request.json()
            provider.payloads.append(payload)
            provider.jobs[job_id].update(payload["job"])
            return {}

        @app.delete("/jobs/{job_id}")
        async def delete(job_id: int):
            if job_id not in provider.jobs:
                return missing(job_id)
            del provider.jobs[job_id]
            return {}

        @app.post("/jobs/{job_id}/test")
        async def trigger(job_id: int):
            if job_id not in provider.jobs:
                return missing(job_id)
            return {"success": True, "jobId": job_id, "response": "OK"}

        @app.get("/jobs/{job_id}/history")
        async def history(job_id: int, page: int = 1, limit: int = 50):
            if job_id not in provider.jobs:
                return missing(job_id)
            entries = provider.history.get(job_id, [])
            return {"history": entries[(page - 1) * limit: page * limit]}

        @app.get("/account")
        async def account():
            return {"plan": "premium", "jobsLimit": 100}

        return app


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float):
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
async def manager(provider, fake_sleep):
    m = CronJobManager.from_config(
        API_KEY,
        base_url=PROVIDER_URL,
        transport=httpx.ASGITransport(app=provider.app),
        sleep=fake_sleep,
    )
    yield m
    await m.client.aclose()
