# farm/models.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# -------------------- Schemas --------------------

class SubmitResponse(BaseModel):
    """Body of a successful js-tests submission."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    js_tests: list[str] = Field(default_factory=list, alias="js tests")

    @property
    def job_id(self) -> Optional[str]:
        return self.js_tests[0] if self.js_tests else None


class SuiteResult(BaseModel):
    """Framework result reported by a finished job (qunit, jasmine, ...)."""
    model_config = ConfigDict(extra="allow")

    failed: Optional[int] = None
    message: Any = None


class StatusEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    status: Optional[str] = None
    url: Optional[str] = None
    platform: Optional[list[Any]] = None
    result: Optional[SuiteResult] = None


class StatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    completed: Optional[bool] = None
    # a body without entries is treated as a test error
    js_tests: list[StatusEntry] = Field(
        default_factory=lambda: [StatusEntry(status="test error")],
        alias="js tests",
    )

    @property
    def entry(self) -> StatusEntry:
        return self.js_tests[0] if self.js_tests else StatusEntry(status="test error")
