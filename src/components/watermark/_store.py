"""
WatermarkSettingsStore - single owner of the current watermark settings.

Key behaviors:
- load() always returns settings (defaults when nothing is stored, or when
  the stored value no longer validates)
- Loaded values are cached for a TTL so each render does not hit storage
- save() validates a partial update, merges it over the current settings,
  persists the full value and invalidates the cache
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from src.adapters.clock import SystemClock
from src.core.ports.time import TimePort
from src.domain.errors import ValidationIssue

from .models import UpdateWatermarkInput, UpdateWatermarkOutput, WatermarkSettings
from .ports import WatermarkSettingsRepoPort

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60


def get_default_settings() -> WatermarkSettings:
    return WatermarkSettings()


def validate_patch(patch: dict[str, Any]) -> list[ValidationIssue]:
    """
    Check a partial update before merging.

    Returns list of errors (empty if valid).
    """
    errors: list[ValidationIssue] = []
    known = set(WatermarkSettings.model_fields)

    for name in patch:
        if name not in known:
            errors.append(
                ValidationIssue(
                    code="unknown_field",
                    message=f"Unknown watermark setting '{name}'",
                    field=name,
                )
            )

    opacity = patch.get("opacity")
    if isinstance(opacity, int | float) and not 0 <= opacity <= 100:
        errors.append(
            ValidationIssue(
                code="out_of_range",
                message="Opacity must be between 0 and 100",
                field="opacity",
            )
        )

    padding = patch.get("padding")
    if isinstance(padding, int | float) and padding < 0:
        errors.append(
            ValidationIssue(
                code="out_of_range",
                message="Padding must be non-negative",
                field="padding",
            )
        )
    return errors


def _issues_from(exc: ValidationError) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            code=str(err.get("type", "invalid")),
            message=str(err.get("msg", "Invalid value")),
            field=".".join(str(part) for part in err.get("loc", ())) or "settings",
        )
        for err in exc.errors()
    ]


class WatermarkSettingsStore:
    """Load/save lifecycle for the process-wide watermark settings."""

    def __init__(
        self,
        repo: WatermarkSettingsRepoPort,
        *,
        clock: TimePort | None = None,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
    ) -> None:
        self._repo = repo
        self._clock = clock or SystemClock()
        self._ttl = timedelta(seconds=ttl_seconds)
        self._cached: WatermarkSettings | None = None
        self._cached_at: datetime | None = None

    def load(self) -> WatermarkSettings:
        """Current settings; cached for the TTL."""
        now = self._clock.now_utc()
        if (
            self._cached is not None
            and self._cached_at is not None
            and now - self._cached_at < self._ttl
        ):
            return self._cached

        settings = self._read()
        self._cached = settings
        self._cached_at = now
        return settings

    def invalidate(self) -> None:
        self._cached = None
        self._cached_at = None

    def save(self, inp: UpdateWatermarkInput) -> UpdateWatermarkOutput:
        """Validate, merge over the current value and persist."""
        errors = validate_patch(inp.patch)
        if errors:
            return UpdateWatermarkOutput(settings=None, errors=errors, success=False)

        current = self._read()
        merged = {**current.model_dump(), **inp.patch}
        try:
            settings = WatermarkSettings.model_validate(merged)
        except ValidationError as e:
            return UpdateWatermarkOutput(settings=None, errors=_issues_from(e), success=False)

        self._repo.save(settings.model_dump())
        self.invalidate()
        logger.info(
            "Watermark settings saved (enabled=%s, type=%s)", settings.enabled, settings.type
        )
        return UpdateWatermarkOutput(settings=settings, errors=[], success=True)

    def reset(self) -> WatermarkSettings:
        """Persist the defaults."""
        settings = get_default_settings()
        self._repo.save(settings.model_dump())
        self.invalidate()
        return settings

    def _read(self) -> WatermarkSettings:
        stored = self._repo.get()
        if not stored:
            return get_default_settings()
        merged = {**get_default_settings().model_dump(), **stored}
        try:
            return WatermarkSettings.model_validate(merged)
        except ValidationError:
            logger.warning("Stored watermark settings are invalid; using defaults")
            return get_default_settings()
