"""Centralised configuration models leveraging Pydantic."""

from __future__ import annotations

import logging
import os
import re

from pydantic import BaseModel, Field, field_validator

from .hashing import DEFAULT_HASH, HASHERS
from .sketches.hll_impl import MAX_PRECISION, MIN_PRECISION

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Z0-9_]+)\}\}")


def _is_placeholder(value: object) -> bool:
    return isinstance(value, str) and PLACEHOLDER_PATTERN.fullmatch(value.strip()) is not None


def _resolve_int(value: object, placeholder: str, default: int) -> int:
    if value is None or _is_placeholder(value):
        return default
    if isinstance(value, bool):
        raise TypeError(f"{placeholder} must resolve to an integer value")
    if isinstance(value, (int, str)):
        return int(value)
    raise TypeError(f"{placeholder} must resolve to an integer value")


def _resolve_string(value: object, placeholder: str, default: str | None = None) -> str:
    if value is None or _is_placeholder(value):
        if default is not None:
            return default
        raise ValueError(f"{placeholder} must be replaced with a concrete value")
    return str(value)


def _default_workers() -> int:
    return os.cpu_count() or 1


def _decode_delimiter(text: str) -> str:
    # Environment values cannot carry raw control characters comfortably.
    escapes = {"\\n": "\n", "\\t": "\t", "\\r": "\r", "\\0": "\0"}
    return escapes.get(text, text)


class SketchSettings(BaseModel):
    precision: int = Field(default=14)
    hash_name: str = Field(default=DEFAULT_HASH)

    @field_validator("precision", mode="before")
    def _v_precision(cls, v: object) -> int:
        value = _resolve_int(v, "{{HLL_PRECISION}}", 14)
        if not MIN_PRECISION <= value <= MAX_PRECISION:
            raise ValueError(
                f"{{{{HLL_PRECISION}}}} must be between {MIN_PRECISION} and {MAX_PRECISION}"
            )
        return value

    @field_validator("hash_name", mode="before")
    def _v_hash_name(cls, v: object) -> str:
        value = _resolve_string(v, "{{HASH_FUNCTION}}", DEFAULT_HASH)
        if value not in HASHERS:
            raise ValueError(
                "{{HASH_FUNCTION}} must be one of " + ", ".join(f"'{name}'" for name in HASHERS)
            )
        return value


class IngestSettings(BaseModel):
    workers: int = Field(default_factory=_default_workers)
    executor: str = Field(default="process")
    delimiter: str = Field(default="\n")

    @field_validator("workers", mode="before")
    def _v_workers(cls, v: object) -> int:
        value = _resolve_int(v, "{{INGEST_WORKERS}}", _default_workers())
        if value < 1:
            raise ValueError("{{INGEST_WORKERS}} must be a positive integer")
        return value

    @field_validator("executor", mode="before")
    def _v_executor(cls, v: object) -> str:
        value = _resolve_string(v, "{{INGEST_EXECUTOR}}", "process").lower()
        if value not in {"process", "thread"}:
            raise ValueError("{{INGEST_EXECUTOR}} must be 'process' or 'thread'")
        return value

    @field_validator("delimiter", mode="before")
    def _v_delimiter(cls, v: object) -> str:
        value = _decode_delimiter(_resolve_string(v, "{{RECORD_DELIMITER}}", "\n"))
        if len(value.encode("utf-8")) != 1:
            raise ValueError("{{RECORD_DELIMITER}} must be a single byte")
        return value

    @property
    def delimiter_bytes(self) -> bytes:
        return self.delimiter.encode("utf-8")


class LoggingSettings(BaseModel):
    level: str = Field(default="WARNING")

    @field_validator("level", mode="before")
    def _v_level(cls, v: object) -> str:
        value = _resolve_string(v, "{{LOG_LEVEL}}", "WARNING").upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError("{{LOG_LEVEL}} must be a standard logging level name")
        return value


class AppConfig(BaseModel):
    sketch: SketchSettings = Field(default_factory=SketchSettings)
    ingest: IngestSettings = Field(default_factory=IngestSettings)
    log: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls) -> AppConfig:
        env = os.environ
        sketch_kwargs = {
            "precision": env.get("HLL_PRECISION"),
            "hash_name": env.get("HASH_FUNCTION"),
        }
        ingest_kwargs = {
            "workers": env.get("INGEST_WORKERS"),
            "executor": env.get("INGEST_EXECUTOR"),
            "delimiter": env.get("RECORD_DELIMITER"),
        }
        logging_kwargs = {
            "level": env.get("LOG_LEVEL"),
        }
        payload: dict[str, object] = {}
        if any(value is not None for value in sketch_kwargs.values()):
            payload["sketch"] = {k: v for k, v in sketch_kwargs.items() if v is not None}
        if any(value is not None for value in ingest_kwargs.values()):
            payload["ingest"] = {k: v for k, v in ingest_kwargs.items() if v is not None}
        if any(value is not None for value in logging_kwargs.values()):
            payload["log"] = {k: v for k, v in logging_kwargs.items() if v is not None}
        return cls(**payload)

    def with_overrides(self, **overrides: object) -> AppConfig:
        """Return a validated copy with CLI-level overrides applied.

        Keys are ``section__field`` (for example ``sketch__precision``); ``None``
        values are ignored so unset options keep the environment value.
        """

        data = self.model_dump()
        for key, value in overrides.items():
            if value is None:
                continue
            section, _, name = key.partition("__")
            data[section][name] = value
        return AppConfig.model_validate(data)
