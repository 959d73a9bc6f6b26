from typing import Any, Awaitable, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from .. import config
from ..auth import require_api_key
from ..bulk import BulkJobManager
from ..errors import ChronosError, NotFound, OperationError, ValidationError
from ..manager import CronJobManager
from ..schemas import BatchReport, BulkIdsRequest, BulkStatusRequest, CloneRequest, JobBackup

router = APIRouter()

# Singleton manager built from the environment; tests override get_manager
_manager: Optional[CronJobManager] = None


def provider_configured() -> bool:
    return bool(config.CRON_JOB_ORG_API_KEY)


async def get_manager() -> CronJobManager:
    global _manager
    if _manager is None:
        if not provider_configured():
            raise HTTPException(status_code=503, detail="CRON_JOB_ORG_API_KEY is not configured")
        settings = config.client_config_from_env()
        _manager = CronJobManager.from_config(**settings.model_dump())
    return _manager


async def close_manager() -> None:
    global _manager
    if _manager is not None:
        await _manager.aclose()
        _manager = None


def _http_error(exc: ChronosError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, OperationError) and isinstance(exc.cause, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


async def _guarded(awaitable: Awaitable[Any]) -> Any:
    try:
        return await awaitable
    except ChronosError as exc:
        raise _http_error(exc) from exc


def _report(report: BatchReport) -> Dict[str, Any]:
    return {
        "summary": report.summary(),
        "results": [result.model_dump() for result in report.results],
    }


@router.get("/jobs")
async def list_jobs(page: int = 1, limit: int = 50, manager: CronJobManager = Depends(get_manager)):
    jobs = await _guarded(manager.list_jobs(page=page, limit=limit))
    return {"jobs": [job.model_dump(by_alias=True) for job in jobs]}


@router.get("/jobs/stats")
async def job_statistics(manager: CronJobManager = Depends(get_manager)):
    stats = await _guarded(BulkJobManager(manager).statistics())
    return stats.model_dump(by_alias=True)


@router.get("/jobs/search")
async def search_jobs(pattern: str, manager: CronJobManager = Depends(get_manager)):
    jobs = await _guarded(BulkJobManager(manager).find_by_pattern(pattern))
    return {"jobs": [job.model_dump(by_alias=True) for job in jobs]}


@router.get("/jobs/backup")
async def backup_jobs(
    authorized: bool = Depends(require_api_key), manager: CronJobManager = Depends(get_manager)
):
    backup = await _guarded(BulkJobManager(manager).backup_all())
    return backup.model_dump(by_alias=True, mode="json")


@router.post("/jobs/restore")
async def restore_jobs(
    backup: JobBackup,
    skip_existing: bool = True,
    prefix: str = "",
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    report = await _guarded(
        BulkJobManager(manager).restore(backup, skip_existing=skip_existing, prefix=prefix)
    )
    return report.model_dump()


@router.post("/jobs")
async def create_job(
    job: Dict[str, Any],
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    return await _guarded(manager.create_job(job))


@router.post("/jobs/bulk")
async def create_jobs(
    jobs: List[Dict[str, Any]],
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    return _report(await BulkJobManager(manager).create_many(jobs))


@router.post("/jobs/bulk/status")
async def set_jobs_status(
    request: BulkStatusRequest,
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    return _report(await BulkJobManager(manager).set_status_many(request.job_ids, request.enabled))


@router.post("/jobs/bulk/test")
async def test_jobs(
    request: BulkIdsRequest,
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    return _report(await BulkJobManager(manager).test_many(request.job_ids))


@router.post("/jobs/bulk/delete")
async def delete_jobs(
    request: BulkIdsRequest,
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    return _report(await BulkJobManager(manager).delete_many(request.job_ids))


@router.get("/account")
async def account_info(manager: CronJobManager = Depends(get_manager)):
    return await _guarded(manager.get_account_info())


@router.get("/jobs/{job_id}")
async def get_job(job_id: str, manager: CronJobManager = Depends(get_manager)):
    job = await _guarded(manager.get_job(job_id))
    return {"job": job.to_payload()}


@router.get("/jobs/{job_id}/history")
async def job_history(
    job_id: str, page: int = 1, limit: int = 50, manager: CronJobManager = Depends(get_manager)
):
    history = await _guarded(manager.get_job_history(job_id, page=page, limit=limit))
    return {"history": history}


@router.patch("/jobs/{job_id}")
async def update_job(
    job_id: str,
    changes: Dict[str, Any],
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    return await _guarded(manager.update_job(job_id, changes))


@router.post("/jobs/{job_id}/enable")
async def enable_job(
    job_id: str, authorized: bool = Depends(require_api_key), manager: CronJobManager = Depends(get_manager)
):
    return await _guarded(manager.enable_job(job_id))


@router.post("/jobs/{job_id}/disable")
async def disable_job(
    job_id: str, authorized: bool = Depends(require_api_key), manager: CronJobManager = Depends(get_manager)
):
    return await _guarded(manager.disable_job(job_id))


@router.post("/jobs/{job_id}/test")
async def trigger_job(
    job_id: str, authorized: bool = Depends(require_api_key), manager: CronJobManager = Depends(get_manager)
):
    return await _guarded(manager.test_job(job_id))


@router.post("/jobs/{job_id}/clone")
async def clone_job(
    job_id: str,
    request: CloneRequest,
    authorized: bool = Depends(require_api_key),
    manager: CronJobManager = Depends(get_manager),
):
    return await _guarded(BulkJobManager(manager).clone(job_id, request.overrides))


@router.delete("/jobs/{job_id}")
async def delete_job(
    job_id: str, authorized: bool = Depends(require_api_key), manager: CronJobManager = Depends(get_manager)
):
    await _guarded(manager.delete_job(job_id))
    return {"ok": True}
