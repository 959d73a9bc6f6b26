"""Bulk operations over many jobs.

Items are processed one at a time, in input order. A failing item is
recorded in the report and never stops the batch; only a failure to list
jobs up front (find, backup, statistics, restore) aborts the call.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from . import metrics
from . import translator
from .errors import ChronosError, OperationError, ValidationError
from .manager import CronJobManager, JobId
from .schemas import (
    BatchReport,
    Failed,
    JobBackup,
    JobConfig,
    JobStatistics,
    JobSummary,
    RestoreDetail,
    RestoreReport,
    Succeeded,
)

logger = logging.getLogger(__name__)


def _error_type(exc: ChronosError) -> str:
    if isinstance(exc, OperationError):
        return exc.kind
    return type(exc).__name__


class BulkJobManager:
    def __init__(self, manager: CronJobManager):
        self.manager = manager

    async def _run(
        self,
        operation: str,
        items: Iterable[Any],
        action: Callable[[Any], Awaitable[Any]],
    ) -> BatchReport:
        report = BatchReport(operation=operation)
        for item in items:
            try:
                value = await action(item)
            except ChronosError as exc:
                logger.warning("%s failed for %r: %s", operation, item, exc)
                metrics.bulk_items_total.labels(operation=operation, outcome="failed").inc()
                report.results.append(Failed(item=item, error=str(exc), error_type=_error_type(exc)))
            else:
                metrics.bulk_items_total.labels(operation=operation, outcome="succeeded").inc()
                report.results.append(Succeeded(item=item, value=value))
        logger.info(
            "%s: %d succeeded, %d failed", operation, report.succeeded, report.failed
        )
        return report

    async def create_many(self, configs: Iterable[Union[JobConfig, Mapping[str, Any]]]) -> BatchReport:
        return await self._run("create", configs, self.manager.create_job)

    async def set_status_many(self, job_ids: Iterable[JobId], enabled: bool) -> BatchReport:
        action = self.manager.enable_job if enabled else self.manager.disable_job
        return await self._run("enable" if enabled else "disable", job_ids, action)

    async def test_many(self, job_ids: Iterable[JobId]) -> BatchReport:
        return await self._run("test", job_ids, self.manager.test_job)

    async def delete_many(self, job_ids: Iterable[JobId]) -> BatchReport:
        return await self._run("delete", job_ids, self.manager.delete_job)

    async def clone(
        self, source_id: JobId, overrides: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        source = await self.manager.get_job(source_id)
        config = translator.from_wire(source)
        changes = dict(overrides or {})
        if "job" not in changes and "title" not in changes:
            changes["title"] = f"{config.title} (Clone)"
        return await self.manager.create_job(translator.apply_changes(config, changes))

    async def clone_many(
        self, job_ids: Iterable[JobId], overrides: Optional[Mapping[str, Any]] = None
    ) -> BatchReport:
        async def clone_one(job_id: JobId) -> Dict[str, Any]:
            return await self.clone(job_id, overrides)

        return await self._run("clone", job_ids, clone_one)

    async def find_by_pattern(self, pattern: str) -> List[JobSummary]:
        needle = pattern.lower()
        jobs = await self.manager.list_all_jobs()
        return [job for job in jobs if needle in (job.title or "").lower()]

    async def backup_all(self) -> JobBackup:
        jobs = await self.manager.list_all_jobs()
        return JobBackup(
            exported_at=datetime.now(timezone.utc),
            job_count=len(jobs),
            jobs=[{**job.model_dump(by_alias=True), "_originalId": job.job_id} for job in jobs],
        )

    async def statistics(self) -> JobStatistics:
        jobs = await self.manager.list_all_jobs()
        stats = JobStatistics(total=len(jobs))
        for job in jobs:
            if job.enabled:
                stats.enabled += 1
            else:
                stats.disabled += 1

            method = job.request_method or "GET"
            stats.by_method[method] = stats.by_method.get(method, 0) + 1

            host = "invalid"
            if translator.is_absolute_url(job.url):
                host = httpx.URL(job.url).host
            stats.by_host[host] = stats.by_host.get(host, 0) + 1
        return stats

    async def restore(
        self,
        backup: Union[JobBackup, Mapping[str, Any]],
        skip_existing: bool = True,
        prefix: str = "",
    ) -> RestoreReport:
        if not isinstance(backup, JobBackup):
            backup = JobBackup.model_validate(dict(backup))

        existing = set()
        if skip_existing:
            existing = {job.title for job in await self.manager.list_all_jobs()}

        report = RestoreReport(total=len(backup.jobs))
        for entry in backup.jobs:
            original_id = entry.get("_originalId", entry.get("jobId"))
            title = prefix + str(entry.get("title", ""))

            if skip_existing and title in existing:
                report.skipped += 1
                report.details.append(
                    RestoreDetail(original_id=original_id, title=title, status="skipped", reason="Already exists")
                )
                continue

            try:
                created = await self._restore_one(entry, title)
            except ChronosError as exc:
                logger.warning("restore failed for %r: %s", title, exc)
                report.failed += 1
                report.details.append(
                    RestoreDetail(original_id=original_id, title=title, status="failed", reason=str(exc))
                )
                continue

            report.restored += 1
            report.details.append(
                RestoreDetail(
                    original_id=original_id, title=title, status="restored", new_id=created.get("jobId")
                )
            )
        return report

    async def _restore_one(self, entry: Dict[str, Any], title: str) -> Dict[str, Any]:
        if "schedule" not in entry:
            raise ValidationError("Backup entry has no schedule")
        wire = {k: v for k, v in entry.items() if k not in ("jobId", "_originalId")}
        config = translator.apply_changes(translator.from_wire(wire), {"title": title})
        return await self.manager.create_job(config)
