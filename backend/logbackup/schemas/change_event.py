"""Pydantic schemas for change feed events."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, model_validator

from logbackup.schemas.log_file import LogFileImage, LogFileKey

INSERT = "INSERT"
MODIFY = "MODIFY"


class ChangeEvent(BaseModel):
    """A catalog insert/update as delivered by the change feed."""

    event_id: str | None = None
    event_name: str
    keys: LogFileKey
    old_image: LogFileImage | None = None
    new_image: LogFileImage | None = None

    @model_validator(mode="before")
    @classmethod
    def _keys_from_image(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("keys") and data.get("new_image"):
            data = dict(data)
            data["keys"] = data["new_image"]
        return data

    @property
    def instance_id(self) -> str:
        return self.keys.instance_id

    @property
    def log_file_name(self) -> str:
        return self.keys.log_file_name

    @classmethod
    def from_stream_record(cls, record: dict) -> "ChangeEvent":
        """Build an event from a DynamoDB-stream-shaped record."""
        change = record.get("dynamodb", {})
        return cls.model_validate({
            "event_id": record.get("eventID"),
            "event_name": record.get("eventName", ""),
            "keys": change.get("Keys") or change.get("NewImage"),
            "old_image": change.get("OldImage"),
            "new_image": change.get("NewImage"),
        })
