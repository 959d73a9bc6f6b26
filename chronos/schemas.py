from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BasicAuth(BaseModel):
    username: str
    password: str


class Notification(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    on_failure: bool = Field(default=True, alias="onFailure")
    on_success: bool = Field(default=False, alias="onSuccess")
    on_disable: bool = Field(default=False, alias="onDisable")


class HttpHeader(BaseModel):
    key: str
    value: str


# A mapping for the usual case; a list when a header name repeats
Headers = Union[Dict[str, str], List[HttpHeader]]


class JobConfig(BaseModel):
    """Caller-facing job description. Title is accepted as ``job`` or ``title``."""

    model_config = ConfigDict(populate_by_name=True)

    # required for submission, optional here so validation can report every gap
    title: Optional[str] = Field(default=None, alias="job")
    url: Optional[str] = None
    schedule: Optional[str] = None

    method: str = "GET"
    headers: Headers = Field(default_factory=dict)
    body: Optional[str] = None
    auth: Optional[BasicAuth] = None
    notification: Optional[Notification] = None
    enabled: bool = True
    timezone: str = "UTC"
    timeout: int = Field(default=30, gt=0)
    save_responses: bool = True


class JobUpdate(BaseModel):
    """Partial changes; only fields the caller set take part in a merge."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, alias="job")
    url: Optional[str] = None
    schedule: Optional[str] = None
    method: Optional[str] = None
    headers: Optional[Headers] = None
    body: Optional[str] = None
    auth: Optional[BasicAuth] = None
    notification: Optional[Notification] = None
    enabled: Optional[bool] = None
    timezone: Optional[str] = None
    timeout: Optional[int] = Field(default=None, gt=0)
    save_responses: Optional[bool] = None


class ScheduleFields(BaseModel):
    """Expanded cron fields. An empty list means every value in range."""

    minutes: List[int] = Field(default_factory=list)
    hours: List[int] = Field(default_factory=list)
    mdays: List[int] = Field(default_factory=list)
    months: List[int] = Field(default_factory=list)
    wdays: List[int] = Field(default_factory=list)


class WireSchedule(ScheduleFields):
    # provider-side keys such as expiresAt ride along untouched
    model_config = ConfigDict(extra="allow")

    timezone: str = "UTC"


class WireAuth(BaseModel):
    enable: bool = True
    user: str = ""
    password: str = ""


class WireJob(BaseModel):
    """Provider-facing job. Unknown provider keys (jobId, lastStatus...) are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str
    url: str
    enabled: bool = True
    save_responses: bool = Field(default=True, alias="saveResponses")
    schedule: WireSchedule = Field(default_factory=WireSchedule)
    request_timeout: int = Field(default=30, alias="requestTimeout")
    redirect_success: bool = Field(default=True, alias="redirectSuccess")
    request_method: str = Field(default="GET", alias="requestMethod")
    http_headers: List[HttpHeader] = Field(default_factory=list, alias="httpHeaders")
    body: Optional[str] = None
    auth: Optional[WireAuth] = None
    notification: Optional[Notification] = None

    def to_payload(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        if not self.http_headers:
            data.pop("httpHeaders", None)
        return data


class JobSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    job_id: Optional[Union[int, str]] = Field(default=None, alias="jobId")
    title: str = ""
    url: str = ""
    enabled: bool = True
    request_method: str = Field(default="GET", alias="requestMethod")


class Succeeded(BaseModel):
    success: Literal[True] = True
    item: Any
    value: Any = None


class Failed(BaseModel):
    success: Literal[False] = False
    item: Any
    error: str
    error_type: str


OperationResult = Union[Succeeded, Failed]


class BatchReport(BaseModel):
    operation: str
    results: List[OperationResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def failed_items(self) -> List[Any]:
        return [r.item for r in self.results if not r.success]

    def __len__(self) -> int:
        return len(self.results)

    def summary(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "total": len(self.results),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failed_items": self.failed_items,
        }


class JobBackup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: str = "1.0"
    exported_at: datetime = Field(alias="exportedAt")
    job_count: int = Field(alias="jobCount")
    jobs: List[Dict[str, Any]] = Field(default_factory=list)


class JobStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    enabled: int = 0
    disabled: int = 0
    by_method: Dict[str, int] = Field(default_factory=dict, alias="byMethod")
    by_host: Dict[str, int] = Field(default_factory=dict, alias="byHost")


class RestoreDetail(BaseModel):
    original_id: Optional[Union[int, str]] = None
    title: str
    status: Literal["restored", "skipped", "failed"]
    new_id: Optional[Union[int, str]] = None
    reason: Optional[str] = None


class RestoreReport(BaseModel):
    total: int = 0
    restored: int = 0
    skipped: int = 0
    failed: int = 0
    details: List[RestoreDetail] = Field(default_factory=list)


class BulkStatusRequest(BaseModel):
    job_ids: List[Union[int, str]]
    enabled: bool


class BulkIdsRequest(BaseModel):
    job_ids: List[Union[int, str]]


class CloneRequest(BaseModel):
    overrides: Dict[str, Any] = Field(default_factory=dict)
