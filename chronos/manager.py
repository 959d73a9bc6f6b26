"""Single-job operations against the scheduling provider.

Usage:
  async with CronJobManager.from_config(api_key) as manager:
      created = await manager.create_job({"job": "Report", "url": "https://...", "schedule": "0 9 * * 1"})
      await manager.disable_job(created["jobId"])
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

import httpx
import pydantic

from .client import ResilientClient, Sleep
from .config import ClientConfig
from .errors import ConfigurationError, MalformedResponse, OperationError, TransportError
from .schemas import JobConfig, JobSummary, JobUpdate, WireJob
from . import translator

logger = logging.getLogger(__name__)

JobId = Union[int, str]

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def _object(operation: str, subject: Any, data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OperationError(
            operation, MalformedResponse(f"expected a JSON object, got {type(data).__name__}"), subject
        )
    return data


def _items(operation: str, subject: Any, data: Any, key: str) -> List[Any]:
    items = _object(operation, subject, data).get(key) or []
    if not isinstance(items, list):
        raise OperationError(operation, MalformedResponse(f"'{key}' is not a list"), subject)
    return items


def _parsed(operation: str, subject: Any, model: Type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        fields = ", ".join(sorted({".".join(str(p) for p in err["loc"]) or "value" for err in exc.errors()}))
        raise OperationError(
            operation, MalformedResponse(f"invalid {model.__name__} ({fields})"), subject
        ) from exc


class CronJobManager:
    def __init__(self, client: ResilientClient):
        self.client = client

    @classmethod
    def from_config(
        cls,
        api_key: Optional[str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
        **options: Any,
    ) -> "CronJobManager":
        if not api_key:
            raise ConfigurationError("API key is required for CronJobManager")
        config = ClientConfig(api_key=api_key, **options)
        return cls(ResilientClient(config, transport=transport, sleep=sleep))

    async def __aenter__(self) -> "CronJobManager":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _call(
        self,
        operation: str,
        subject: Any,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            return await self.client.call(method, path, params=params, body=body)
        except TransportError as exc:
            raise OperationError(operation, exc, subject) from exc

    async def create_job(self, config: Union[JobConfig, Mapping[str, Any]]) -> Dict[str, Any]:
        wire = translator.to_wire(config)
        operation = "create cron job"
        data = await self._call(operation, None, "PUT", "/jobs", body={"job": wire.to_payload()})
        logger.info("created cron job %r", wire.title)
        return _object(operation, None, data)

    async def list_jobs(self, page: int = 1, limit: int = 50) -> List[JobSummary]:
        operation = "list cron jobs"
        data = await self._call(operation, None, "GET", "/jobs", params={"page": page, "limit": limit})
        return [_parsed(operation, None, JobSummary, job) for job in _items(operation, None, data, "jobs")]

    async def list_all_jobs(self, page_size: int = 100, max_pages: int = 100) -> List[JobSummary]:
        jobs: List[JobSummary] = []
        for page in range(1, max_pages + 1):
            batch = await self.list_jobs(page=page, limit=page_size)
            jobs.extend(batch)
            if len(batch) < page_size:
                break
        return jobs

    async def get_job(self, job_id: JobId) -> WireJob:
        translator.require_job_id(job_id)
        operation = "get cron job"
        data = _object(operation, job_id, await self._call(operation, job_id, "GET", f"/jobs/{job_id}"))
        return _parsed(operation, job_id, WireJob, data.get("job", data))

    async def update_job(
        self, job_id: JobId, changes: Union[JobUpdate, Mapping[str, Any]]
    ) -> Dict[str, Any]:
        translator.require_job_id(job_id)
        existing = await self.get_job(job_id)
        merged = translator.merge_update(existing, changes)
        operation = "update cron job"
        data = await self._call(
            operation, job_id, "PATCH", f"/jobs/{job_id}", body={"job": merged.to_payload()}
        )
        return _object(operation, job_id, data)

    async def delete_job(self, job_id: JobId) -> bool:
        translator.require_job_id(job_id)
        await self._call("delete cron job", job_id, "DELETE", f"/jobs/{job_id}")
        logger.info("deleted cron job %s", job_id)
        return True

    async def enable_job(self, job_id: JobId) -> Dict[str, Any]:
        return await self.update_job(job_id, JobUpdate(enabled=True))

    async def disable_job(self, job_id: JobId) -> Dict[str, Any]:
        return await self.update_job(job_id, JobUpdate(enabled=False))

    async def get_job_history(self, job_id: JobId, page: int = 1, limit: int = 50) -> List[Dict[str, Any]]:
        translator.require_job_id(job_id)
        operation = "get job history for"
        data = await self._call(
            operation, job_id, "GET", f"/jobs/{job_id}/history", params={"page": page, "limit": limit}
        )
        return _items(operation, job_id, data, "history")

    async def test_job(self, job_id: JobId) -> Dict[str, Any]:
        """Trigger one execution now, outside the schedule."""
        translator.require_job_id(job_id)
        operation = "test cron job"
        data = await self._call(operation, job_id, "POST", f"/jobs/{job_id}/test")
        return _object(operation, job_id, data)

    async def get_account_info(self) -> Dict[str, Any]:
        operation = "get account info"
        return _object(operation, None, await self._call(operation, None, "GET", "/account"))
