from __future__ import annotations

import functools
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from bufferguard import CONFIG_PATH
from bufferguard.logging_config import get_logger
from bufferguard.policies.defaults import (
    DEFAULT_BUFFER_COLOR_ID,
    DEFAULT_BUFFER_MARKER,
    DEFAULT_CONFERENCING_SIGNATURES,
    DEFAULT_CUSTOMER_CODE_PATTERN,
    DEFAULT_EXCLUDED_CALENDAR_PATTERNS,
    DEFAULT_EXCLUDED_TITLE_PATTERNS,
)

logger = get_logger(__name__)


class ConfigError(ValueError):
    """Invalid configuration. Fatal: raised before any calendar access."""


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def _check_pattern(pattern: str) -> str:
    try:
        compile_pattern(pattern)
    except re.error as e:
        raise ValueError(f"Invalid regex pattern {pattern!r}: {e}") from e
    return pattern


# =============================================================================
# BufferPolicy (args/bufferguard.yaml: policy)
# =============================================================================

class ConferencingSignature(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    pattern: str
    provider: str = Field(min_length=1)

    @field_validator("pattern")
    @classmethod
    def _valid_pattern(cls, value: str) -> str:
        return _check_pattern(value)


class VisualStyle(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    color_id: Optional[str] = Field(default=DEFAULT_BUFFER_COLOR_ID)
    show_as_free: bool = Field(default=False)


class BufferPolicy(BaseModel):
    """
    Immutable policy shared by the classifier, planner, conflict filter and
    reconciler. Pattern lists keep declaration order; first match wins.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    pre_buffer_minutes: int = Field(default=15, ge=0)
    post_buffer_minutes: int = Field(default=15, ge=0)
    min_meeting_minutes: int = Field(default=15, ge=0)
    lookahead_days: int = Field(default=7, ge=1)
    extended_lookahead_days: int = Field(default=30, ge=1)
    guest_ceiling: Optional[int] = Field(default=None, gt=0)
    require_acceptance: bool = Field(default=True)
    excluded_calendar_patterns: tuple[str, ...] = Field(
        default=tuple(DEFAULT_EXCLUDED_CALENDAR_PATTERNS)
    )
    excluded_title_patterns: tuple[str, ...] = Field(default=tuple(DEFAULT_EXCLUDED_TITLE_PATTERNS))
    customer_code_pattern: Optional[str] = Field(default=DEFAULT_CUSTOMER_CODE_PATTERN)
    conferencing_signatures: tuple[ConferencingSignature, ...] = Field(
        default_factory=lambda: tuple(ConferencingSignature(**s) for s in DEFAULT_CONFERENCING_SIGNATURES)
    )
    buffer_marker: str = Field(default=DEFAULT_BUFFER_MARKER, min_length=1)
    visual_style: VisualStyle = Field(default_factory=VisualStyle)

    @field_validator("excluded_calendar_patterns", "excluded_title_patterns")
    @classmethod
    def _valid_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(_check_pattern(p) for p in value)

    @field_validator("customer_code_pattern")
    @classmethod
    def _valid_customer_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        _check_pattern(value)
        if compile_pattern(value).groups < 1:
            raise ValueError("customer_code_pattern must capture the code in a group")
        return value

    @field_validator("buffer_marker")
    @classmethod
    def _marker_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("buffer_marker must not be blank")
        return value

    @model_validator(mode="after")
    def _extended_covers_normal(self) -> "BufferPolicy":
        if self.extended_lookahead_days < self.lookahead_days:
            raise ValueError("extended_lookahead_days must be >= lookahead_days")
        return self

    @property
    def pre_buffer(self) -> timedelta:
        return timedelta(minutes=self.pre_buffer_minutes)

    @property
    def post_buffer(self) -> timedelta:
        return timedelta(minutes=self.post_buffer_minutes)

    @property
    def min_meeting_duration(self) -> timedelta:
        return timedelta(minutes=self.min_meeting_minutes)

    def horizon(self, extended: bool = False) -> timedelta:
        return timedelta(days=self.extended_lookahead_days if extended else self.lookahead_days)

    @property
    def title_matchers(self) -> tuple[re.Pattern[str], ...]:
        return tuple(compile_pattern(p) for p in self.excluded_title_patterns)

    @property
    def calendar_matchers(self) -> tuple[re.Pattern[str], ...]:
        return tuple(compile_pattern(p) for p in self.excluded_calendar_patterns)

    @property
    def customer_code_matcher(self) -> Optional[re.Pattern[str]]:
        if self.customer_code_pattern is None:
            return None
        return compile_pattern(self.customer_code_pattern)

    @property
    def signature_matchers(self) -> tuple[tuple[re.Pattern[str], str], ...]:
        return tuple((compile_pattern(s.pattern), s.provider) for s in self.conferencing_signatures)


# =============================================================================
# BufferGuardConfig (args/bufferguard.yaml)
# =============================================================================

class CalendarsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    read: list[str] = Field(default_factory=lambda: ["primary"], min_length=1)
    write: str = Field(default="primary", min_length=1)

    @property
    def all_ids(self) -> list[str]:
        """Read calendars plus the write calendar, in order, without repeats."""
        ids = list(dict.fromkeys(self.read))
        if self.write not in ids:
            ids.append(self.write)
        return ids


class GoogleConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    access_token_env: str = Field(default="GOOGLE_CALENDAR_TOKEN")
    max_results: int = Field(default=250, ge=1, le=2500)


class BufferGuardConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    policy: BufferPolicy = Field(default_factory=BufferPolicy)
    calendars: CalendarsConfig = Field(default_factory=CalendarsConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)


# =============================================================================
# load_config
# =============================================================================

def load_config(path: Path | str | None = None, overrides: dict[str, Any] | None = None) -> BufferGuardConfig:
    """
    Load and validate the YAML config.

    A missing file yields defaults. Anything malformed raises ConfigError.
    """
    yaml_path = Path(path) if path is not None else CONFIG_PATH

    raw: dict[str, Any] = {}
    if yaml_path.exists():
        try:
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {yaml_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Could not read {yaml_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{yaml_path} must contain a mapping at the top level")
    else:
        logger.info("config_missing_using_defaults", path=str(yaml_path))

    if overrides:
        raw = {**raw, **overrides}

    try:
        return BufferGuardConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {yaml_path}: {e}") from e
