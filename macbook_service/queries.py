"""Device query operators and the fixed type -> status -> search -> sort pipeline.

Every function here is pure: inputs are never mutated and a new list is returned.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .catalog import Catalog, Device

SORT_FIELDS: Dict[str, Callable[[Device], Any]] = {
    "release_date": lambda d: d.release,
    "supported_end_date": lambda d: d.supported_end,
    "model_name": lambda d: d.model_name,
    "model_id": lambda d: d.model_id,
    "support_status": lambda d: d.support_status,
    "latest_macos_supported": lambda d: d.latest_macos_supported,
}

DEFAULT_ORDER = "desc"


def select_collection(catalog: Catalog, device_type: Optional[str] = None) -> List[Device]:
    """Resolve ``air``/``pro`` (case-insensitive) to a group; anything else means both."""
    kind = (device_type or "").lower()
    if kind == "air":
        return list(catalog.macbook_air)
    if kind == "pro":
        return list(catalog.macbook_pro)
    return catalog.all_devices()


def filter_by_status(devices: Iterable[Device], status: Optional[str]) -> List[Device]:
    if not status:
        return list(devices)
    return [d for d in devices if d.support_status == status]


def search_devices(devices: Iterable[Device], term: Optional[str]) -> List[Device]:
    """Case-insensitive substring match on model name, model id or support status."""
    if not term:
        return list(devices)
    needle = term.lower()
    return [
        d
        for d in devices
        if needle in d.model_name.lower()
        or needle in d.model_id.lower()
        or needle in d.support_status.lower()
    ]


def sort_devices(
    devices: Iterable[Device],
    sort_by: Optional[str],
    order: Optional[str] = DEFAULT_ORDER,
) -> List[Device]:
    """Stable sort on a known field. Unknown or missing ``sort_by`` keeps the input order."""
    key = SORT_FIELDS.get(sort_by or "")
    if key is None:
        return list(devices)
    descending = (order or DEFAULT_ORDER).lower() != "asc"
    # sorted() stays stable with reverse=True
    return sorted(devices, key=key, reverse=descending)


@dataclass(frozen=True)
class DeviceQuery:
    status: Optional[str] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None
    order: str = DEFAULT_ORDER
    device_type: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "DeviceQuery":
        # empty query string values are treated as absent
        return cls(
            status=args.get("status") or None,
            search=args.get("search") or None,
            sort_by=args.get("sort_by") or None,
            order=args.get("order") or DEFAULT_ORDER,
            device_type=args.get("type") or None,
        )


def run_query(catalog: Catalog, query: DeviceQuery) -> List[Device]:
    devices = select_collection(catalog, query.device_type)
    devices = filter_by_status(devices, query.status)
    devices = search_devices(devices, query.search)
    return sort_devices(devices, query.sort_by, query.order)


def sortable_fields() -> List[str]:
    return list(SORT_FIELDS)