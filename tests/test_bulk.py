import pytest

from chronos.bulk import BulkJobManager
from chronos.errors import OperationError
from chronos.schemas import JobBackup


@pytest.fixture
def bulk(manager):
    return BulkJobManager(manager)


def job_config(title, **overrides):
    config = {"job": title, "url": f"https://example.com/{title.lower().replace(' ', '-')}", "schedule": "0 9 * * 1"}
    config.update(overrides)
    return config


@pytest.mark.asyncio
async def test_create_many_isolates_failures_and_keeps_order(bulk, provider):
    configs = [
        job_config("Standup"),
        job_config("Broken", url="not-a-url"),
        job_config("Weekly Report", schedule="0 16 * * 5"),
        {"job": "Incomplete"},
        job_config("Backup", schedule="0 2 1 * *"),
    ]
    report = await bulk.create_many(configs)

    assert len(report) == 5
    assert [r.item for r in report.results] == configs
    assert [r.success for r in report.results] == [True, False, True, False, True]
    assert report.succeeded == 3
    assert report.failed == 2
    assert report.failed_items == [configs[1], configs[3]]
    assert report.results[1].error == "Invalid URL provided"
    assert report.results[1].error_type == "ValidationError"
    assert report.results[3].error == "Missing required fields: url, schedule"
    assert report.results[0].value == {"jobId": 1}
    assert [job["title"] for job in provider.jobs.values()] == ["Standup", "Weekly Report", "Backup"]


@pytest.mark.asyncio
async def test_create_many_continues_after_provider_failure(bulk, provider, sleeps):
    # first item exhausts its retries on server errors; the second still runs
    provider.failures = [500, 500, 500]
    report = await bulk.create_many([job_config("First"), job_config("Second")])

    assert [r.success for r in report.results] == [False, True]
    assert report.results[0].error.startswith("Failed to create cron job: Server error")
    assert report.results[0].error_type == "ServerError"
    assert provider.count("PUT", "/jobs") == 4
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_set_status_many(bulk, provider):
    first = provider.add_job(title="A", url="https://example.com/a")
    second = provider.add_job(title="B", url="https://example.com/b")

    report = await bulk.set_status_many([first, 404, second], enabled=False)

    assert report.operation == "disable"
    assert [r.success for r in report.results] == [True, False, True]
    assert report.failed_items == [404]
    assert report.results[1].error == "Failed to get cron job 404: Resource not found"
    assert report.results[1].error_type == "NotFound"
    assert provider.jobs[first]["enabled"] is False
    assert provider.jobs[second]["enabled"] is False

    report = await bulk.set_status_many([first], enabled=True)
    assert report.operation == "enable"
    assert provider.jobs[first]["enabled"] is True


@pytest.mark.asyncio
async def test_test_many_and_delete_many(bulk, provider):
    ids = [provider.add_job(title=t, url="https://example.com") for t in ("A", "B")]

    tested = await bulk.test_many([ids[0], None, ids[1]])
    assert [r.success for r in tested.results] == [True, False, True]
    assert tested.results[1].error == "Job ID is required"
    assert tested.results[0].value["response"] == "OK"

    deleted = await bulk.delete_many([ids[1], ids[1], ids[0]])
    assert [r.success for r in deleted.results] == [True, False, True]
    assert provider.jobs == {}
    assert deleted.summary() == {
        "operation": "delete",
        "total": 3,
        "succeeded": 2,
        "failed": 1,
        "failed_items": [ids[1]],
    }


@pytest.mark.asyncio
async def test_find_by_pattern_is_case_insensitive_substring(bulk, provider):
    for title in ("Monday Reminder", "Payroll export", "monday follow-up", "Weekly (reminder)"):
        provider.add_job(title=title, url="https://example.com")

    matches = await bulk.find_by_pattern("MONDAY")
    assert [job.title for job in matches] == ["Monday Reminder", "monday follow-up"]

    # the pattern is a plain substring, not a regex
    matches = await bulk.find_by_pattern("(reminder)")
    assert [job.title for job in matches] == ["Weekly (reminder)"]


@pytest.mark.asyncio
async def test_clone_creates_new_job_and_leaves_source(bulk, manager, provider):
    created = await manager.create_job(
        job_config("Reminder", method="POST", headers={"X-Token": "t"}, body='{"a": 1}')
    )
    source_id = created["jobId"]
    source_before = dict(provider.jobs[source_id])

    result = await bulk.clone(source_id)
    clone = provider.jobs[result["jobId"]]
    assert clone["title"] == "Reminder (Clone)"
    assert clone["httpHeaders"] == [{"key": "X-Token", "value": "t"}]
    assert clone["body"] == '{"a": 1}'
    assert provider.jobs[source_id] == source_before

    result = await bulk.clone(source_id, {"job": "Cloned Reminder", "schedule": "0 10 * * 1"})
    clone = provider.jobs[result["jobId"]]
    assert clone["title"] == "Cloned Reminder"
    assert clone["schedule"]["hours"] == [10]
    assert clone["requestMethod"] == "POST"


@pytest.mark.asyncio
async def test_clone_many_reports_missing_sources(bulk, provider):
    source = provider.add_job(title="Src", url="https://example.com")
    report = await bulk.clone_many([999, source])
    assert [r.success for r in report.results] == [False, True]
    assert len(provider.jobs) == 2


@pytest.mark.asyncio
async def test_backup_all_is_read_only(bulk, provider):
    provider.add_job(title="A", url="https://example.com/a")
    provider.add_job(title="B", url="https://example.com/b", enabled=False)

    backup = await bulk.backup_all()

    assert backup.version == "1.0"
    assert backup.job_count == 2
    assert [job["_originalId"] for job in backup.jobs] == [1, 2]
    assert backup.jobs[1]["enabled"] is False
    assert backup.exported_at.tzinfo is not None
    assert all(method == "GET" for method, _ in provider.requests)


@pytest.mark.asyncio
async def test_statistics(bulk, provider):
    provider.add_job(title="A", url="https://hooks.example.com/a")
    provider.add_job(title="B", url="https://hooks.example.com/b", requestMethod="POST", enabled=False)
    provider.add_job(title="C", url="https://api.other.org/c", requestMethod="POST")
    provider.add_job(title="D", url="broken")

    stats = await bulk.statistics()

    assert stats.total == 4
    assert stats.enabled == 3
    assert stats.disabled == 1
    assert stats.by_method == {"GET": 2, "POST": 2}
    assert stats.by_host == {"hooks.example.com": 2, "api.other.org": 1, "invalid": 1}
    assert {path for _, path in provider.requests} == {"/jobs"}


@pytest.mark.asyncio
async def test_listing_failure_aborts_whole_operation(bulk, provider):
    provider.failures = [401]
    with pytest.raises(OperationError, match="Failed to list cron jobs"):
        await bulk.statistics()


@pytest.mark.asyncio
async def test_restore_skips_existing_and_prefixes(bulk, provider):
    provider.add_job(title="Existing", url="https://example.com/e")
    backup = JobBackup.model_validate(
        {
            "exportedAt": "2024-06-01T00:00:00Z",
            "jobCount": 3,
            "jobs": [
                {
                    "jobId": 10,
                    "_originalId": 10,
                    "title": "Existing",
                    "url": "https://example.com/e",
                    "schedule": {"minutes": [0], "hours": [9], "mdays": [], "months": [], "wdays": [1]},
                },
                {
                    "jobId": 11,
                    "_originalId": 11,
                    "title": "Fresh",
                    "url": "https://example.com/f",
                    "schedule": {"minutes": [30], "hours": [8], "mdays": [], "months": [], "wdays": []},
                },
                {"jobId": 12, "_originalId": 12, "title": "No schedule", "url": "https://example.com/n"},
            ],
        }
    )

    report = await bulk.restore(backup)
    assert (report.total, report.restored, report.skipped, report.failed) == (3, 1, 1, 1)
    assert [d.status for d in report.details] == ["skipped", "restored", "failed"]
    assert report.details[1].original_id == 11
    restored = provider.jobs[report.details[1].new_id]
    assert restored["title"] == "Fresh"
    assert restored["schedule"]["minutes"] == [30]

    prefixed = await bulk.restore(backup, prefix="[restored] ")
    assert prefixed.restored == 2
    assert prefixed.details[0].title == "[restored] Existing"


@pytest.mark.asyncio
async def test_malformed_remote_job_fails_only_its_item(bulk, provider):
    first = provider.add_job(title="A", url="https://example.com/a")
    broken = provider.add_job(title="No url")
    last = provider.add_job(title="C", url="https://example.com/c")

    report = await bulk.set_status_many([first, broken, last], enabled=False)

    assert [r.success for r in report.results] == [True, False, True]
    assert report.results[1].error_type == "MalformedResponse"
    assert report.results[1].error.startswith(f"Failed to get cron job {broken}: Malformed provider response")
    assert provider.jobs[first]["enabled"] is False
    assert provider.jobs[last]["enabled"] is False
