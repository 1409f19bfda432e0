# SPDX-License-Identifier: Apache-2.0
#
# Async boundary to the host's key/value storage. Reads never raise: an
# unreachable backend or a malformed payload yields defaults. Writes report
# failure as ``False``.

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from data_designer_credibility.perspective import DEFAULT_PERSPECTIVE_SOURCES
from data_designer_credibility.scoring import (
    DEFAULT_WEIGHTS,
    GENERIC_REASON,
    Confidence,
    Label,
    ScoreResult,
    WeightVector,
)

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
WEIGHTS_KEY = "weights"
SCANS_KEY = "scans"
HIGHLIGHTS_KEY = "highlights"

MAX_SCANS = 50
MAX_HIGHLIGHTS = 100


class StorageBackend(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...


class MemoryStorage:
    """Dict-backed :class:`StorageBackend`."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Any:
        return self.data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = value


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


def _domain_list(group: str, raw: Any) -> list[str] | None:
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or not all(isinstance(d, str) for d in raw):
        logger.warning(f"Ignoring malformed perspective source group {group!r}")
        return None
    return list(raw)


class Settings(BaseModel):
    """User-facing switches and perspective source groups.

    Accepts the persisted camelCase keys as well as field names. A default
    source group that is missing, ``None``, or not a list of domains falls
    back to its default domains; a group deliberately emptied stays empty.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    smart_bubbles: bool = Field(default=True, alias="smartBubbles")
    selection_toolbar: bool = Field(default=True, alias="selectionToolbar")
    highlights: bool = False
    quiet_mode: bool = Field(default=False, alias="quietMode")
    on_device_learning: bool = Field(default=False, alias="onDeviceLearning")
    perspective_sources: dict[str, list[str]] = Field(
        default_factory=lambda: {group: list(domains) for group, domains in DEFAULT_PERSPECTIVE_SOURCES.items()},
        alias="perspectiveSources",
    )

    @field_validator("perspective_sources", mode="before")
    @classmethod
    def _merge_sources(cls, value: Any) -> Any:
        if value is None:
            value = {}
        if not isinstance(value, Mapping):
            return value
        merged = {}
        for group, defaults in DEFAULT_PERSPECTIVE_SOURCES.items():
            domains = _domain_list(group, value.get(group))
            merged[group] = list(defaults) if domains is None else domains
        for group, raw_domains in value.items():
            if group in merged:
                continue
            domains = _domain_list(group, raw_domains)
            if domains is not None:
                merged[group] = domains
        return merged

    @field_validator("perspective_sources")
    @classmethod
    def _strip_domains(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        return {group: [d.strip() for d in domains if d.strip()] for group, domains in value.items()}

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ScanRecord(BaseModel):
    """One page verdict in the scan history.

    The verdict fields go through :meth:`ScoreResult.from_payload`, so a
    cached entry with a missing or junk label, confidence, reasons, or score
    is repaired rather than dropped. Only ``url`` and ``timestamp`` are
    required.
    """

    url: str
    timestamp: float
    label: str = Label.UNKNOWN.value
    reasons: list[str] = Field(default_factory=lambda: [GENERIC_REASON])
    confidence: str = Confidence.TENTATIVE.value
    score: float = Field(default=0.0, ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def _normalize_verdict(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        return {**data, **ScoreResult.from_payload(data).to_payload()}


class SavedHighlight(BaseModel):
    text: str
    url: str
    timestamp: float
    title: str = ""


# ---------------------------------------------------------------------------
# Boundary helpers
# ---------------------------------------------------------------------------


def unwrap_envelope(raw: Any) -> Any:
    """Strip a ``{"success": ..., "data": ...}`` response envelope if present."""
    if isinstance(raw, Mapping) and "success" in raw:
        return raw.get("data") if raw.get("success") else None
    return raw


def normalize_settings(raw: Any) -> Settings:
    """Build :class:`Settings` from a stored payload, field by field.

    A malformed field falls back to its own default; the valid fields next to
    it are kept.
    """
    raw = unwrap_envelope(raw)
    if not isinstance(raw, Mapping):
        return Settings()
    accepted: dict[str, Any] = {}
    for name, field in Settings.model_fields.items():
        key = field.alias if field.alias in raw else name
        if key not in raw:
            continue
        try:
            Settings.model_validate({name: raw[key]})
        except ValidationError:
            logger.warning(f"Malformed setting {key!r}; using its default")
            continue
        accepted[name] = raw[key]
    return Settings.model_validate(accepted)


async def _safe_get(backend: StorageBackend, key: str) -> Any:
    try:
        return unwrap_envelope(await backend.get(key))
    except Exception as exc:
        logger.warning(f"Storage read of {key!r} failed; using defaults: {exc}")
        return None


async def _safe_set(backend: StorageBackend, key: str, value: Any) -> bool:
    try:
        await backend.set(key, value)
    except Exception as exc:
        logger.warning(f"Storage write of {key!r} failed: {exc}")
        return False
    return True


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class WeightStore:
    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    async def get_weights(self) -> WeightVector:
        return WeightVector.from_mapping(await _safe_get(self.backend, WEIGHTS_KEY))

    async def set_weights(self, weights: WeightVector) -> bool:
        return await _safe_set(self.backend, WEIGHTS_KEY, weights.to_mapping())

    async def reset_weights(self) -> bool:
        return await self.set_weights(DEFAULT_WEIGHTS)


class SettingsStore:
    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    async def get_settings(self) -> Settings:
        return normalize_settings(await _safe_get(self.backend, SETTINGS_KEY))

    async def set_settings(self, settings: Settings) -> bool:
        return await _safe_set(self.backend, SETTINGS_KEY, settings.to_payload())


class _CappedLog:
    """Newest-first list persisted under one key, trimmed to ``limit`` entries."""

    key: str
    limit: int
    model: type[BaseModel]

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    async def entries(self) -> list[Any]:
        raw = await _safe_get(self.backend, self.key)
        if not isinstance(raw, list):
            return []
        entries = []
        for item in raw:
            try:
                entries.append(self.model.model_validate(item))
            except ValidationError:
                logger.warning(f"Dropping malformed {self.key!r} entry")
        return entries

    async def append(self, entry: BaseModel) -> bool:
        entries = [entry, *await self.entries()][: self.limit]
        return await _safe_set(self.backend, self.key, [e.model_dump() for e in entries])


class ScanHistory(_CappedLog):
    key = SCANS_KEY
    limit = MAX_SCANS
    model = ScanRecord

    async def latest(self) -> ScanRecord | None:
        entries = await self.entries()
        return entries[0] if entries else None


class HighlightBookmarks(_CappedLog):
    key = HIGHLIGHTS_KEY
    limit = MAX_HIGHLIGHTS
    model = SavedHighlight
