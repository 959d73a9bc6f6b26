"""Translation between JobConfig and the provider's wire job, with pre-flight validation."""
from typing import Any, List, Mapping, Tuple, Type, TypeVar, Union

import httpx
import pydantic

from . import cron
from .errors import CronValidationError, ValidationError
from .schemas import (
    BasicAuth,
    Headers,
    HttpHeader,
    JobConfig,
    JobUpdate,
    ScheduleFields,
    WireAuth,
    WireJob,
    WireSchedule,
)

# (key reported when missing, JobConfig attribute)
REQUIRED_FIELDS = (("job", "title"), ("url", "url"), ("schedule", "schedule"))

# JobUpdate field -> top-level wire key it rewrites; schedule and timezone merge inside the schedule
UPDATE_WIRE_KEYS = {
    "title": "title",
    "url": "url",
    "method": "requestMethod",
    "headers": "httpHeaders",
    "body": "body",
    "auth": "auth",
    "notification": "notification",
    "enabled": "enabled",
    "timeout": "requestTimeout",
    "save_responses": "saveResponses",
}

SCHEDULE_KEYS = tuple(attr for _, attr, _, _ in cron.FIELDS)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def _validated(model: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid {model.__name__}: {problems}") from exc


def coerce_config(config: Union[JobConfig, Mapping[str, Any]]) -> JobConfig:
    if isinstance(config, JobConfig):
        return config
    return _validated(JobConfig, config)


def coerce_update(changes: Union[JobUpdate, Mapping[str, Any]]) -> JobUpdate:
    if isinstance(changes, JobUpdate):
        return changes
    return _validated(JobUpdate, changes)


def require_job_id(job_id: Any) -> None:
    if job_id is None or job_id == "":
        raise ValidationError("Job ID is required")


def is_absolute_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return bool(parsed.scheme) and bool(parsed.host)


def header_pairs(headers: Headers) -> List[Tuple[str, str]]:
    if isinstance(headers, dict):
        return list(headers.items())
    return [(h.key, h.value) for h in headers]


def validate_config(config: JobConfig) -> None:
    missing = [key for key, attr in REQUIRED_FIELDS if not getattr(config, attr)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if not is_absolute_url(config.url):
        raise ValidationError("Invalid URL provided")

    try:
        cron.parse(config.schedule)
    except CronValidationError as exc:
        raise ValidationError(f"Invalid cron expression: {exc}") from exc


def to_wire(config: Union[JobConfig, Mapping[str, Any]]) -> WireJob:
    config = coerce_config(config)
    validate_config(config)

    fields = cron.parse(config.schedule)
    wire = WireJob(
        title=config.title,
        url=config.url,
        enabled=config.enabled,
        save_responses=config.save_responses,
        schedule=WireSchedule(timezone=config.timezone, **fields.model_dump()),
        request_timeout=config.timeout,
        request_method=config.method.upper(),
        http_headers=[HttpHeader(key=k, value=v) for k, v in header_pairs(config.headers)],
        body=config.body,
    )
    if config.auth is not None:
        wire.auth = WireAuth(enable=True, user=config.auth.username, password=config.auth.password)
    if config.notification is not None:
        wire.notification = config.notification.model_copy()
    return wire


def from_wire(wire: Union[WireJob, Mapping[str, Any]]) -> JobConfig:
    if not isinstance(wire, WireJob):
        wire = _validated(WireJob, wire)

    auth = None
    if wire.auth is not None and wire.auth.enable:
        auth = BasicAuth(username=wire.auth.user, password=wire.auth.password)

    # the provider may send [-1] for "every value"
    expanded = {}
    for key in SCHEDULE_KEYS:
        values = getattr(wire.schedule, key)
        expanded[key] = [] if -1 in values else values
    schedule = ScheduleFields.model_validate(expanded)

    names = [h.key for h in wire.http_headers]
    if len(set(names)) == len(names):
        headers: Headers = {h.key: h.value for h in wire.http_headers}
    else:
        headers = [h.model_copy() for h in wire.http_headers]

    return JobConfig(
        title=wire.title,
        url=wire.url,
        schedule=cron.to_expression(schedule),
        method=wire.request_method,
        headers=headers,
        body=wire.body,
        auth=auth,
        notification=wire.notification,
        enabled=wire.enabled,
        timezone=wire.schedule.timezone,
        timeout=wire.request_timeout,
        save_responses=wire.save_responses,
    )


def apply_changes(config: JobConfig, changes: Union[JobUpdate, Mapping[str, Any]]) -> JobConfig:
    """Overlay only the fields the caller explicitly set."""
    changes = coerce_update(changes)
    merged = {**config.model_dump(), **changes.model_dump(exclude_unset=True)}
    return _validated(JobConfig, merged)


def merge_update(existing: WireJob, changes: Union[JobUpdate, Mapping[str, Any]]) -> WireJob:
    """Rewrite only the wire keys touched by ``changes``.

    The merged job is validated as a whole first. Everything the caller did
    not set (redirectSuccess, schedule extras like expiresAt, jobId,
    repeated headers...) is sent back exactly as the provider returned it.
    """
    changes = coerce_update(changes)
    updated = to_wire(apply_changes(from_wire(existing), changes)).to_payload()

    payload = existing.to_payload()
    touched = changes.model_fields_set
    for field, key in UPDATE_WIRE_KEYS.items():
        if field not in touched:
            continue
        if key in updated:
            payload[key] = updated[key]
        else:
            payload.pop(key, None)

    schedule = dict(payload.get("schedule") or {})
    if "schedule" in touched:
        schedule.update({key: updated["schedule"][key] for key in SCHEDULE_KEYS})
    if "timezone" in touched:
        schedule["timezone"] = updated["schedule"]["timezone"]
    payload["schedule"] = schedule

    return _validated(WireJob, payload)
