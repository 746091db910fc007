import uuid

from . import db
from .util.time_util import local_now


def _new_id():
    return str(uuid.uuid4())


class Athlete(db.Model):
    __tablename__ = 'athletes'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True)
    phone = db.Column(db.String(50), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=False)
    emergency_contact = db.Column(db.String(200), nullable=False)
    emergency_contact_email = db.Column(db.String(255))
    emergency_phone = db.Column(db.String(50), nullable=False)
    has_valid_waiver = db.Column(db.Boolean, nullable=False, default=False)
    waiver_signed_date = db.Column(db.Date)
    waiver_expiration_date = db.Column(db.Date)
    last_visited = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=local_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=local_now)

    checkins = db.relationship('CheckIn', back_populates='athlete', lazy='dynamic')

    __table_args__ = (
        db.Index('idx_athletes_name', 'first_name', 'last_name'),
    )

    def __repr__(self):
        return f"<Athlete {self.id} {self.first_name} {self.last_name}>"


class Event(db.Model):
    __tablename__ = 'events'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    max_capacity = db.Column(db.Integer, nullable=False)
    current_capacity = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=local_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=local_now)

    checkins = db.relationship('CheckIn', back_populates='event', lazy='dynamic')

    __table_args__ = (
        db.CheckConstraint('max_capacity > 0', name='ck_events_max_capacity_positive'),
        db.CheckConstraint(
            'current_capacity >= 0 AND current_capacity <= max_capacity',
            name='ck_events_capacity_bounds',
        ),
    )

    def __repr__(self):
        return f"<Event {self.id} {self.name} {self.date}>"


class CheckIn(db.Model):
    __tablename__ = 'checkins'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    athlete_id = db.Column(db.String(36), db.ForeignKey('athletes.id'), nullable=False, index=True)
    event_id = db.Column(db.String(36), db.ForeignKey('events.id'), nullable=False, index=True)
    check_in_time = db.Column(db.DateTime, nullable=False, index=True)
    waiver_validated = db.Column(db.Boolean, nullable=False)
    notes = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, nullable=False, default=local_now)

    athlete = db.relationship('Athlete', back_populates='checkins')
    event = db.relationship('Event', back_populates='checkins')

    __table_args__ = (
        db.UniqueConstraint('athlete_id', 'event_id', name='uq_checkins_athlete_event'),
    )

    def __repr__(self):
        return f"<CheckIn {self.id} athlete={self.athlete_id} event={self.event_id}>"


class User(db.Model):
    __tablename__ = 'users'

    ROLES = ('admin', 'staff')

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    username = db.Column(db.String(100), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(10), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=local_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=local_now)

    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'staff')", name='ck_users_role'),
    )

    def __repr__(self):
        return f"<User {self.id} {self.username} ({self.role})>"
