"""Pydantic schemas for log file listings and catalog images."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = ("size", "last_written", "last_backup")

# DynamoDB-style attribute names accepted alongside our own
_ATTRIBUTE_NAMES = {
    "DBInstanceIdentifier": "instance_id",
    "LogFileName": "log_file_name",
    "Size": "size",
    "LastWritten": "last_written",
    "LastBackup": "last_backup",
}


def unwrap_attribute(value: Any) -> Any:
    """Strip a typed attribute wrapper like {"N": "100"} or {"S": "db1"}."""
    if isinstance(value, dict) and len(value) == 1:
        type_tag, inner = next(iter(value.items()))
        if type_tag in ("S", "N"):
            return inner
        if type_tag == "NULL":
            return None
    return value


def parse_int(value: Any) -> int:
    """Parse an integer that may arrive as a number or a numeric string.

    Raises ValueError for anything else (floats with a fraction, bools, text).
    """
    if isinstance(value, bool):
        raise ValueError(f"boolean is not a number: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"not an integer: {value!r}")


class LogFileDetails(BaseModel):
    """One entry of a describe_db_log_files page."""

    model_config = ConfigDict(populate_by_name=True)

    log_file_name: str = Field(validation_alias=AliasChoices("log_file_name", "LogFileName"))
    size: int = Field(0, validation_alias=AliasChoices("size", "Size"))
    last_written: int = Field(0, validation_alias=AliasChoices("last_written", "LastWritten"))


class LogFileKey(BaseModel):
    """Composite catalog key."""

    instance_id: str = Field(validation_alias=AliasChoices("instance_id", "DBInstanceIdentifier"))
    log_file_name: str = Field(validation_alias=AliasChoices("log_file_name", "LogFileName"))

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: unwrap_attribute(value) for key, value in data.items()}
        return data


class LogFileImage(BaseModel):
    """Catalog record image carried on a change event.

    Numeric attributes are parsed explicitly. A value that cannot be parsed
    is logged, stored as None and its name added to ``unparsed_fields`` so
    callers can treat the record as changed.
    """

    instance_id: str | None = None
    log_file_name: str | None = None
    size: int | None = None
    last_written: int | None = None
    last_backup: int | None = None
    unparsed_fields: set[str] = Field(default_factory=set)

    @model_validator(mode="before")
    @classmethod
    def _decode(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        label = "/".join(
            str(unwrap_attribute(data.get(ours, data.get(theirs))))
            for ours, theirs in (("instance_id", "DBInstanceIdentifier"), ("log_file_name", "LogFileName"))
        )
        decoded: dict[str, Any] = {}
        unparsed: set[str] = set(data.get("unparsed_fields") or ())
        for key, raw in data.items():
            if key == "unparsed_fields":
                continue
            name = _ATTRIBUTE_NAMES.get(key, key)
            value = unwrap_attribute(raw)
            if name in NUMERIC_FIELDS and value is not None:
                try:
                    value = parse_int(value)
                except ValueError:
                    logger.warning(f"Unparseable {name}={raw!r} for {label}, treating as changed")
                    unparsed.add(name)
                    value = None
            decoded[name] = value

        decoded["unparsed_fields"] = unparsed
        return decoded
