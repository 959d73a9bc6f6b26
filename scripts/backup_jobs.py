#!/usr/bin/env python3
"""Dump every cron-job.org job into a JSON backup file.

Usage:
  CRON_JOB_ORG_API_KEY=... python scripts/backup_jobs.py

Environment variables:
- CRON_JOB_ORG_API_KEY (required)
- BACKUP_PATH (optional, default cron-jobs-backup.json)
"""
import asyncio
import os
from pathlib import Path

from chronos.bulk import BulkJobManager
from chronos.config import client_config_from_env
from chronos.manager import CronJobManager

BACKUP_PATH = os.getenv("BACKUP_PATH", "cron-jobs-backup.json")


async def write_backup(manager: CronJobManager, path: Path) -> int:
    backup = await BulkJobManager(manager).backup_all()
    path.write_text(backup.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    return backup.job_count


async def run_backup():
    settings = client_config_from_env()
    async with CronJobManager.from_config(**settings.model_dump()) as manager:
        count = await write_backup(manager, Path(BACKUP_PATH))
    print(f"backup: wrote {count} jobs to {BACKUP_PATH}")


if __name__ == "__main__":
    try:
        asyncio.run(run_backup())
    except KeyboardInterrupt:
        print("backup: exiting")
