import json

import pytest

from chronos import cron, translator
from scripts.backup_jobs import write_backup
from scripts.setup_reminders import build_reminder_jobs


def test_reminder_jobs_are_valid_monday_posts():
    jobs = build_reminder_jobs("https://hooks.example.com/monday", "secret")

    assert [job["schedule"] for job in jobs] == ["0 12 * * 1", "30 13 * * 1"]
    for job in jobs:
        assert job["method"] == "POST"
        assert job["headers"]["X-Cron-Token"] == "secret"
        assert json.loads(job["body"])["type"] == "biweekly"
        assert cron.validate(job["schedule"]).valid
        wire = translator.to_wire(job)
        assert wire.url == "https://hooks.example.com/monday"


@pytest.mark.asyncio
async def test_reminders_create_through_bulk_manager(manager, provider):
    from chronos.bulk import BulkJobManager

    report = await BulkJobManager(manager).create_many(build_reminder_jobs("https://hooks.example.com/m", "t"))
    assert report.succeeded == 2
    assert sorted(job["schedule"]["hours"][0] for job in provider.jobs.values()) == [12, 13]


@pytest.mark.asyncio
async def test_write_backup(manager, provider, tmp_path):
    provider.add_job(title="Nightly", url="https://example.com/n")
    provider.add_job(title="Hourly", url="https://example.com/h")

    path = tmp_path / "backup.json"
    count = await write_backup(manager, path)

    assert count == 2
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == "1.0"
    assert data["jobCount"] == 2
    assert [job["title"] for job in data["jobs"]] == ["Nightly", "Hourly"]
