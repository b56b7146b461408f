"""In-memory MacBook catalog, loaded once at startup and never mutated."""

import json
import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

# YYYY-MM-DD, with YYYY-MM and YYYY allowed for estimated dates
_CALENDAR_DATE = re.compile(r"^(\d{4})(?:-(\d{2})(?:-(\d{2}))?)?$")


class DatasetError(Exception):
    """The catalog source is missing, unparseable or inconsistent."""


def parse_calendar_date(value: str) -> Optional[date]:
    match = _CALENDAR_DATE.match(value.strip())
    if not match:
        return None
    year, month, day = match.groups()
    try:
        return date(int(year), int(month or 1), int(day or 1))
    except ValueError:
        return None


class Device(BaseModel):
    """One MacBook hardware model. Unknown fields are kept and served as-is."""

    model_config = ConfigDict(frozen=True, extra="allow", protected_namespaces=())

    model_name: str
    model_id: str
    release_date: str
    support_status: str
    supported_end_date: str
    latest_macos_supported: str

    @field_validator("release_date", "supported_end_date")
    @classmethod
    def _check_calendar_date(cls, value: str) -> str:
        if parse_calendar_date(value) is None:
            raise ValueError(f"not a calendar date: {value!r}")
        return value

    @property
    def release(self) -> date:
        return parse_calendar_date(self.release_date)

    @property
    def supported_end(self) -> date:
        return parse_calendar_date(self.supported_end_date)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class DeviceGroups(BaseModel):
    model_config = ConfigDict(frozen=True)

    macbook_air: Tuple[Device, ...]
    macbook_pro: Tuple[Device, ...]


class Catalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    macbook_models: DeviceGroups
    support_status_definitions: Dict[str, str]
    notes: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _check_consistency(self) -> "Catalog":
        if not self.support_status_definitions:
            raise ValueError("support_status_definitions must not be empty")

        seen = set()
        for device in self.all_devices():
            if device.model_id in seen:
                raise ValueError(f"duplicate model_id: {device.model_id}")
            seen.add(device.model_id)
            if device.support_status not in self.support_status_definitions:
                raise ValueError(
                    f"{device.model_id}: unknown support_status {device.support_status!r} "
                    f"(expected one of {', '.join(self.status_names())})"
                )
        return self

    @property
    def macbook_air(self) -> Tuple[Device, ...]:
        return self.macbook_models.macbook_air

    @property
    def macbook_pro(self) -> Tuple[Device, ...]:
        return self.macbook_models.macbook_pro

    def all_devices(self) -> List[Device]:
        """Air models followed by Pro models, in source order."""
        return [*self.macbook_models.macbook_air, *self.macbook_models.macbook_pro]

    def find_device(self, model_id: str) -> Optional[Device]:
        for device in self.all_devices():
            if device.model_id == model_id:
                return device
        return None

    def status_names(self) -> List[str]:
        return list(self.support_status_definitions)


def load_catalog(path: Path) -> Catalog:
    """Read and validate the catalog JSON document at ``path``.

    Raises DatasetError on any problem; a partially valid catalog is never returned.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise DatasetError(f"cannot read catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DatasetError(f"catalog {path} is not valid JSON: {e}") from e

    try:
        catalog = Catalog.model_validate(raw)
    except ValidationError as e:
        raise DatasetError(f"catalog {path} failed validation: {e}") from e

    logger.info(
        "Loaded %d devices (%d air, %d pro) from %s",
        len(catalog.macbook_air) + len(catalog.macbook_pro),
        len(catalog.macbook_air),
        len(catalog.macbook_pro),
        path,
    )
    return catalog
