"""Pydantic schemas for stage run summaries."""

from pydantic import BaseModel, Field


class ScanResult(BaseModel):
    instances_found: int = 0
    instances_published: int = 0
    queue: str | None = None
    instance_ids: list[str] = Field(default_factory=list)


class InstanceDetectStats(BaseModel):
    instance_id: str
    files_seen: int = 0
    audit_files: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: int = 0


class DetectResult(BaseModel):
    instances: list[InstanceDetectStats] = Field(default_factory=list)
    failed_instances: list[str] = Field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(stats.inserted for stats in self.instances)

    @property
    def updated(self) -> int:
        return sum(stats.updated for stats in self.instances)


class DownloadResult(BaseModel):
    received: int = 0
    skipped_event_type: int = 0
    skipped_unchanged: int = 0
    backed_up: int = 0
    failed: int = 0
    archived_keys: list[str] = Field(default_factory=list)


class RelayResult(BaseModel):
    delivered: int = 0
    batches: int = 0
