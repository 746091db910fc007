"""Translation between API payloads (camelCase) and model attributes (snake_case).

Every route goes through one of the maps declared at the bottom of this module,
so a field is renamed or converted in exactly one place.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, NamedTuple, Optional

from ..errors import ValidationError
from .time_util import Conversion


class Field(NamedTuple):
    api_name: str
    attr: str
    kind: str = 'str'
    writable: bool = True


def _parse_str(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_text(value):
    return '' if value is None else str(value)


def _parse_bool(value):
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in {'true', '1', 'yes'}:
        return True
    if isinstance(value, str) and value.strip().lower() in {'false', '0', 'no'}:
        return False
    raise ValueError(f"Invalid boolean: {value!r}")


def _parse_int(value):
    if isinstance(value, bool):
        raise ValueError(f"Invalid integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    raise ValueError(f"Invalid integer: {value!r}")


def _optional(parser):
    def parse(value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return parser(value)
    return parse


_PARSERS = {
    'str': _parse_str,
    'text': _parse_text,
    'bool': _parse_bool,
    'int': _parse_int,
    'date': _optional(Conversion.parse_date),
    'time': _optional(Conversion.parse_time),
    'datetime': _optional(Conversion.parse_timestamp),
}

_FORMATTERS = {
    'date': Conversion.format_date,
    'time': Conversion.format_time,
    'datetime': Conversion.format_timestamp,
    'bool': lambda value: bool(value) if value is not None else None,
}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class FieldMap:
    """Bidirectional mapping for one entity."""

    def __init__(self, fields: Iterable[Field]):
        self.fields = tuple(fields)
        self._by_api = {f.api_name: f for f in self.fields}

    def attr_for(self, api_name: str) -> str:
        return self._by_api[api_name].attr

    def to_api(self, obj: Any, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = {}
        for f in self.fields:
            value = getattr(obj, f.attr, None)
            formatter = _FORMATTERS.get(f.kind)
            data[f.api_name] = formatter(value) if formatter else value
        if extra:
            data.update(extra)
        return data

    def from_api(self, payload: Optional[Dict[str, Any]], required: Iterable[str] = ()) -> Dict[str, Any]:
        """Convert the writable fields present in ``payload`` to model attributes.

        Raises ``ValidationError`` if a required field is missing or blank, or if
        any present value cannot be converted.
        """
        payload = payload or {}
        if not isinstance(payload, dict):
            raise ValidationError('Request body must be a JSON object')
        missing = [name for name in required if _is_blank(payload.get(name))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        values = {}
        for f in self.fields:
            if not f.writable or f.api_name not in payload:
                continue
            try:
                values[f.attr] = _PARSERS[f.kind](payload[f.api_name])
            except ValueError as exc:
                raise ValidationError(f"Invalid value for {f.api_name}: {exc}") from None
        return values


ATHLETE_FIELDS = FieldMap([
    Field('id', 'id', writable=False),
    Field('firstName', 'first_name'),
    Field('lastName', 'last_name'),
    Field('email', 'email'),
    Field('phone', 'phone'),
    Field('dateOfBirth', 'date_of_birth', 'date'),
    Field('emergencyContact', 'emergency_contact'),
    Field('emergencyContactEmail', 'emergency_contact_email'),
    Field('emergencyPhone', 'emergency_phone'),
    Field('hasValidWaiver', 'has_valid_waiver', 'bool'),
    Field('waiverSignedDate', 'waiver_signed_date', 'date'),
    Field('waiverExpirationDate', 'waiver_expiration_date', 'date'),
    Field('lastVisited', 'last_visited', 'datetime', writable=False),
    Field('createdAt', 'created_at', 'datetime', writable=False),
    Field('updatedAt', 'updated_at', 'datetime', writable=False),
])

EVENT_FIELDS = FieldMap([
    Field('id', 'id', writable=False),
    Field('name', 'name'),
    Field('description', 'description', 'text'),
    Field('date', 'date', 'date'),
    Field('startTime', 'start_time', 'time'),
    Field('endTime', 'end_time', 'time'),
    Field('maxCapacity', 'max_capacity', 'int'),
    Field('currentCapacity', 'current_capacity', 'int', writable=False),
    Field('isActive', 'is_active', 'bool'),
    Field('createdBy', 'created_by'),
    Field('createdAt', 'created_at', 'datetime', writable=False),
    Field('updatedAt', 'updated_at', 'datetime', writable=False),
])

CHECKIN_FIELDS = FieldMap([
    Field('id', 'id', writable=False),
    Field('athleteId', 'athlete_id'),
    Field('eventId', 'event_id'),
    Field('checkInTime', 'check_in_time', 'datetime', writable=False),
    Field('waiverValidated', 'waiver_validated', 'bool'),
    Field('notes', 'notes', 'text'),
    Field('createdAt', 'created_at', 'datetime', writable=False),
])

USER_FIELDS = FieldMap([
    Field('id', 'id', writable=False),
    Field('username', 'username'),
    Field('email', 'email'),
    Field('role', 'role'),
    Field('firstName', 'first_name'),
    Field('lastName', 'last_name'),
    Field('createdAt', 'created_at', 'datetime', writable=False),
    Field('updatedAt', 'updated_at', 'datetime', writable=False),
])
