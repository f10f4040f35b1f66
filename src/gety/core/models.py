from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    HEAD = "HEAD"
    PUT = "PUT"


class WorkItem(BaseModel):
    """One input line: the raw URL plus the method to send it with."""

    model_config = ConfigDict(frozen=True)

    url: str
    method: Method = Method.GET


class RequestOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: Method
    url: str
    status_code: int
    reason: str = ""

    def line(self) -> str:
        return f"{self.method.value} {self.url} -> {self.status_code} {self.reason}".rstrip()


class RequestFailure(Exception):
    """A per-item error at one stage: parse | build | send | read."""

    def __init__(self, stage: str, item: WorkItem, cause: BaseException):
        self.stage = stage
        self.item = item
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        detail = str(self.cause) or type(self.cause).__name__
        return f"{self.stage} {self.item.url}: {detail}"
