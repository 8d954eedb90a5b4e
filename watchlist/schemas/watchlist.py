from typing import Literal

from pydantic import BaseModel, ConfigDict


class SourceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    is_failover_source: bool = False
    endpoints: tuple[str, ...] = ()


class EndpointAttempt(BaseModel):
    model_config = ConfigDict(frozen=True)

    endpoint: str
    outcome: Literal["success", "empty", "error"]
    count: int | None = None
    message: str | None = None

    def describe(self) -> str:
        if self.outcome == "success":
            return f"{self.endpoint}: success ({self.count} pairs)"
        if self.outcome == "empty":
            return f"{self.endpoint}: returned 0 pairs"
        return f"{self.endpoint}: error: {self.message}"


class SourceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_id: str
    symbols: tuple[str, ...] = ()
    diagnostics: tuple[str, ...] = ()


class FailoverTrail(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    endpoints: tuple[str, ...]
    attempts: tuple[EndpointAttempt, ...] = ()


class RunMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_at: str
    sources: tuple[str, ...]
    files: tuple[str, ...]
    failover: FailoverTrail | None = None


class RunResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    results: dict[str, SourceResult]
    combined: tuple[str, ...]
    artifacts: dict[str, tuple[str, ...]]
    metadata: RunMetadata
