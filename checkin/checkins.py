"""Check-in creation/deletion transactions and the joined read projections.

``create_checkin`` is the only multi-row write in the app. The preconditions
are checked up front so each failure has its own error, and the capacity bump
is a guarded ``UPDATE`` while duplicates are rejected by the unique
``(athlete_id, event_id)`` constraint, so a concurrent caller that slipped past
the checks still cannot over-commit the event or insert a second row.
"""
import logging
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from . import db
from .errors import (
    CapacityExceededError,
    ConflictError,
    ConsistencyError,
    InvalidStateError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .models import Athlete, CheckIn, Event
from .queries import get_athlete_by_id, get_event_by_id
from .util import time_util
from .util.field_map import CHECKIN_FIELDS

logger = logging.getLogger(__name__)

ALREADY_CHECKED_IN = 'Athlete is already checked in for this event'


def _raise_for_unavailable(event):
    if not event.is_active:
        raise InvalidStateError('Event is not active')
    if event.current_capacity >= event.max_capacity:
        raise CapacityExceededError('Event is at maximum capacity')


def _find_checkin(athlete_id, event_id):
    return CheckIn.query.filter_by(athlete_id=athlete_id, event_id=event_id).first()


def create_checkin(athlete_id, event_id, notes=None):
    """Check an athlete into an event.

    The waiver flag is copied from the athlete at this moment and never
    re-derived afterwards.
    """
    if not athlete_id or not event_id:
        raise ValidationError('Athlete ID and event ID are required')
    if not isinstance(athlete_id, str) or not isinstance(event_id, str):
        raise ValidationError('Athlete ID and event ID must be strings')
    if notes is not None and not isinstance(notes, str):
        raise ValidationError('Notes must be a string')

    athlete = get_athlete_by_id(athlete_id)
    if athlete is None:
        raise NotFoundError('Athlete not found')
    event = get_event_by_id(event_id)
    if event is None:
        raise NotFoundError('Event not found')
    _raise_for_unavailable(event)
    if _find_checkin(athlete_id, event_id) is not None:
        raise ConflictError(ALREADY_CHECKED_IN)

    now = time_util.local_now()
    try:
        claimed = db.session.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.is_active.is_(True),
                Event.current_capacity < Event.max_capacity,
            )
            .values(current_capacity=Event.current_capacity + 1)
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed != 1:
            # another request took the last spot or disabled the event
            db.session.rollback()
            current = db.session.get(Event, event_id, populate_existing=True)
            if current is None:
                raise NotFoundError('Event not found')
            _raise_for_unavailable(current)
            raise StorageError()

        checkin = CheckIn(
            athlete_id=athlete_id,
            event_id=event_id,
            check_in_time=now,
            waiver_validated=bool(athlete.has_valid_waiver),
            notes=notes or '',
            created_at=now,
        )
        db.session.add(checkin)
        athlete.last_visited = now
        db.session.flush()
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.info("rejected duplicate check-in athlete=%s event=%s", athlete_id, event_id)
        raise ConflictError(ALREADY_CHECKED_IN) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("check-in failed athlete=%s event=%s", athlete_id, event_id)
        raise StorageError() from exc

    logger.info("athlete %s checked in to event %s (waiver %s)",
                athlete_id, event_id, 'ok' if checkin.waiver_validated else 'missing')
    return checkin


def delete_checkin(checkin_id):
    """Remove a check-in and hand its spot back to the event."""
    checkin = db.session.get(CheckIn, checkin_id)
    if checkin is None:
        raise NotFoundError('Check-in not found')
    event_id = checkin.event_id

    try:
        released = db.session.execute(
            update(Event)
            .where(Event.id == event_id, Event.current_capacity > 0)
            .values(current_capacity=Event.current_capacity - 1)
            .execution_options(synchronize_session=False)
        ).rowcount
        if released != 1:
            db.session.rollback()
            logger.error(
                "event %s has check-in %s but current capacity is already zero",
                event_id, checkin_id,
            )
            raise ConsistencyError(f"Event {event_id} capacity would go negative")
        db.session.delete(checkin)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("failed to delete check-in %s", checkin_id)
        raise StorageError() from exc

    logger.info("deleted check-in %s for event %s", checkin_id, event_id)


def update_checkin(checkin_id, payload):
    payload = payload or {}
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    if payload.get('waiverValidated') is None:
        raise ValidationError('Waiver validation status is required')
    values = CHECKIN_FIELDS.from_api(
        {key: payload[key] for key in ('waiverValidated', 'notes') if key in payload}
    )
    values.setdefault('notes', '')

    checkin = db.session.get(CheckIn, checkin_id)
    if checkin is None:
        raise NotFoundError('Check-in not found')
    try:
        for attr, value in values.items():
            setattr(checkin, attr, value)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("failed to update check-in %s", checkin_id)
        raise StorageError() from exc
    return checkin


# --------------------------------------------------------------------------
# Read projections
# --------------------------------------------------------------------------

def _joined_query():
    return (
        db.session.query(CheckIn, Athlete, Event)
        .join(Athlete, CheckIn.athlete_id == Athlete.id)
        .join(Event, CheckIn.event_id == Event.id)
    )


def _project(row):
    checkin, athlete, event = row
    return CHECKIN_FIELDS.to_api(checkin, extra={
        'firstName': athlete.first_name,
        'lastName': athlete.last_name,
        'email': athlete.email,
        'eventName': event.name,
        'eventDate': event.date.isoformat() if event.date else None,
    })


def list_checkins():
    rows = _joined_query().order_by(CheckIn.check_in_time.desc()).all()
    return [_project(row) for row in rows]


def list_todays_checkins():
    start, end = time_util.day_bounds(time_util.local_today())
    rows = (
        _joined_query()
        .filter(CheckIn.check_in_time >= start, CheckIn.check_in_time < end)
        .order_by(CheckIn.check_in_time.desc())
        .all()
    )
    return [_project(row) for row in rows]


def list_checkins_for_athlete(athlete_id):
    rows = (
        _joined_query()
        .filter(CheckIn.athlete_id == athlete_id)
        .order_by(CheckIn.check_in_time.desc())
        .all()
    )
    return [_project(row) for row in rows]


def list_checkins_for_event(event_id):
    rows = (
        _joined_query()
        .filter(CheckIn.event_id == event_id)
        .order_by(CheckIn.check_in_time.desc())
        .all()
    )
    return [_project(row) for row in rows]


def get_checkin(checkin_id):
    row = _joined_query().filter(CheckIn.id == checkin_id).one_or_none()
    if row is None:
        raise NotFoundError('Check-in not found')
    return _project(row)


def compute_stats(rows, now):
    """Fold ``(check_in_time, waiver_validated)`` pairs into the overview counters."""
    today = now.date()
    week_ago = now - timedelta(days=7)
    stats = {
        'today': 0,
        'thisWeek': 0,
        'total': 0,
        'waiverValidated': 0,
        'waiverNotValidated': 0,
    }
    for check_in_time, waiver_validated in rows:
        stats['total'] += 1
        if check_in_time.date() == today:
            stats['today'] += 1
        if check_in_time >= week_ago:
            stats['thisWeek'] += 1
        if waiver_validated:
            stats['waiverValidated'] += 1
        else:
            stats['waiverNotValidated'] += 1
    return stats


def get_stats_overview():
    rows = db.session.query(CheckIn.check_in_time, CheckIn.waiver_validated).all()
    return compute_stats(rows, time_util.local_now())
