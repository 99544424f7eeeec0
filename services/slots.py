"""Slot keys and the ``facility|date|type|time`` reference format.

The resource type reaches us as a number from some clients and as text from
others (``5`` vs ``"5"``). ``ResourceType`` folds both into one canonical key
and every stored booking uses that key.
"""
import re
from dataclasses import dataclass
from datetime import date as date_cls

from services.errors import InvalidReference

REFERENCE_DELIMITER = "|"

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_NUMERIC_RE = re.compile(r"^([+-]?)0*(\d{1,9})(?:\.0*)?$")
MAX_RESOURCE_TYPE_LENGTH = 40


@dataclass(frozen=True)
class ResourceType:
    key: str
    is_numeric: bool

    @classmethod
    def parse(cls, value) -> "ResourceType":
        if isinstance(value, ResourceType):
            return value
        if value is None or isinstance(value, bool):
            raise InvalidReference("resource type is required")

        text = str(value).strip()
        if not text:
            raise InvalidReference("resource type is required")

        # plain integers only; "1e5000" and friends stay text
        match = _NUMERIC_RE.match(text)
        if match:
            return cls(key=str(int(match.group(1) + match.group(2))), is_numeric=True)
        if len(text) > MAX_RESOURCE_TYPE_LENGTH:
            raise InvalidReference("resource type is too long")
        return cls(key=text.lower(), is_numeric=False)

    @property
    def label(self) -> str:
        return f"{self.key}-a-side" if self.is_numeric else self.key

    def __str__(self):
        return self.key


def normalize_resource_type(value) -> str:
    return ResourceType.parse(value).key


def _normalize_date(value) -> str:
    text = str(value or "").strip()
    try:
        return date_cls.fromisoformat(text).isoformat()
    except ValueError:
        raise InvalidReference(f"invalid date: {value!r}")


def _normalize_time(value) -> str:
    match = _TIME_RE.match(str(value or "").strip())
    if not match:
        raise InvalidReference(f"invalid time: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidReference(f"invalid time: {value!r}")
    return f"{hours:02d}:{minutes:02d}"


@dataclass(frozen=True)
class SlotKey:
    facility_id: str
    date: str
    resource_type: ResourceType
    time: str

    @classmethod
    def from_parts(cls, facility_id, date, resource_type, time) -> "SlotKey":
        facility = str(facility_id or "").strip()
        if not facility:
            raise InvalidReference("facility id is required")
        return cls(
            facility_id=facility,
            date=_normalize_date(date),
            resource_type=ResourceType.parse(resource_type),
            time=_normalize_time(time),
        )

    def __str__(self):
        return build_reference(self)


def parse_reference(reference) -> SlotKey:
    parts = str(reference or "").split(REFERENCE_DELIMITER)
    if len(parts) < 4 or not all(p.strip() for p in parts[:4]):
        raise InvalidReference(f"malformed slot reference: {reference!r}")
    facility_id, day, resource_type, time = parts[:4]
    return SlotKey.from_parts(facility_id, day, resource_type, time)


def build_reference(slot: SlotKey) -> str:
    return REFERENCE_DELIMITER.join([slot.facility_id, slot.date, slot.resource_type.key, slot.time])
