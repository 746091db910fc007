from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from checkin.errors import ValidationError
from checkin.util.field_map import ATHLETE_FIELDS, EVENT_FIELDS
from checkin.util.time_util import Conversion, day_bounds


def test_event_payload_to_attributes():
    values = EVENT_FIELDS.from_api({
        'name': 'Clinic',
        'date': '2026-05-02',
        'startTime': '9:30',
        'endTime': '11:00:00',
        'maxCapacity': '16',
        'isActive': 'false',
        'currentCapacity': 99,
        'createdBy': 'u1',
    })
    assert values == {
        'name': 'Clinic',
        'date': date(2026, 5, 2),
        'start_time': time(9, 30),
        'end_time': time(11, 0),
        'max_capacity': 16,
        'is_active': False,
        'created_by': 'u1',
    }


def test_missing_required_fields_are_listed():
    with pytest.raises(ValidationError) as exc:
        ATHLETE_FIELDS.from_api({'firstName': 'A', 'lastName': '  '}, required=('firstName', 'lastName', 'phone'))
    assert exc.value.message == 'Missing required fields: lastName, phone'


def test_malformed_values_raise_validation_error():
    with pytest.raises(ValidationError):
        EVENT_FIELDS.from_api({'startTime': '25:00'})
    with pytest.raises(ValidationError):
        ATHLETE_FIELDS.from_api({'hasValidWaiver': 'maybe'})
    with pytest.raises(ValidationError, match='JSON object'):
        EVENT_FIELDS.from_api(['name', 'Clinic'])


def test_to_api_formats_values():
    athlete = SimpleNamespace(
        id='a1', first_name='Ana', last_name='Lopez', email=None, phone='1',
        date_of_birth=date(2009, 1, 2), emergency_contact='M', emergency_contact_email=None,
        emergency_phone='2', has_valid_waiver=1, waiver_signed_date=None,
        waiver_expiration_date=date(2027, 1, 1), last_visited=datetime(2026, 5, 2, 18, 5, 1),
        created_at=datetime(2026, 1, 1), updated_at=datetime(2026, 1, 1),
    )
    data = ATHLETE_FIELDS.to_api(athlete)
    assert data['firstName'] == 'Ana'
    assert data['dateOfBirth'] == '2009-01-02'
    assert data['hasValidWaiver'] is True
    assert data['waiverSignedDate'] is None
    assert data['lastVisited'] == '2026-05-02T18:05:01.000'


def test_conversion_helpers():
    assert Conversion.parse_date('2026-05-02T00:00:00.000Z') == date(2026, 5, 2)
    assert Conversion.format_time(time(7, 5)) == '07:05'
    assert Conversion.parse_timestamp('2026-05-02T18:05:01') == datetime(2026, 5, 2, 18, 5, 1)
    start, end = day_bounds(date(2026, 5, 2))
    assert (start, end) == (datetime(2026, 5, 2), datetime(2026, 5, 3))
