#!/usr/bin/env python3
"""Create the bi-weekly Monday pay-period reminder jobs on cron-job.org.

The provider fires every Monday; the webhook receiving the call decides
whether the week closes a pay period.

Usage:
  CRON_JOB_ORG_API_KEY=... MONDAY_REMINDER_WEBHOOK_URL=https://... python scripts/setup_reminders.py

Environment variables:
- CRON_JOB_ORG_API_KEY (required)
- MONDAY_REMINDER_WEBHOOK_URL (optional)
- CRON_WEBHOOK_TOKEN (optional, sent as X-Cron-Token)
"""
import asyncio
import json
import os
from typing import Any, Dict, List

from chronos import cron
from chronos.bulk import BulkJobManager
from chronos.config import client_config_from_env
from chronos.manager import CronJobManager

WEBHOOK_URL = os.getenv("MONDAY_REMINDER_WEBHOOK_URL", "https://your-webhook.com/monday-reminder")
WEBHOOK_TOKEN = os.getenv("CRON_WEBHOOK_TOKEN", "your-webhook-token")


def build_reminder_jobs(webhook_url: str = WEBHOOK_URL, token: str = WEBHOOK_TOKEN) -> List[Dict[str, Any]]:
    headers = {"Content-Type": "application/json", "X-Cron-Token": token}
    notification = {"onFailure": True, "onSuccess": False}
    return [
        {
            "job": "Bi-weekly Monday Pay Period Advance Notice",
            "url": webhook_url,
            "schedule": cron.monday_morning(hour=12),
            "method": "POST",
            "headers": headers,
            "body": json.dumps({"action": "advance-notice", "type": "biweekly", "test_mode": False}),
            "notification": notification,
        },
        {
            "job": "Bi-weekly Monday Pay Period Main Reminder",
            "url": webhook_url,
            "schedule": cron.monday_morning(hour=13, minute=30),
            "method": "POST",
            "headers": headers,
            "body": json.dumps(
                {
                    "action": "send-reminders",
                    "type": "biweekly",
                    "channels": ["dev", "design"],
                    "test_mode": False,
                }
            ),
            "notification": notification,
        },
    ]


async def setup_reminders():
    settings = client_config_from_env()
    async with CronJobManager.from_config(**settings.model_dump()) as manager:
        report = await BulkJobManager(manager).create_many(build_reminder_jobs())
    for result in report.results:
        title = result.item["job"]
        if result.success:
            print(f"setup: created {title} (id={result.value.get('jobId')})")
        else:
            print(f"setup: failed {title}: {result.error}")
    return report


if __name__ == "__main__":
    try:
        asyncio.run(setup_reminders())
    except KeyboardInterrupt:
        print("setup: exiting")
