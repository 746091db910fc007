from flask import current_app, jsonify, request

from . import api_bp, json_body
from ..queries import (
    get_events,
    get_todays_events,
    get_past_events,
    get_disabled_events,
    require_event,
    add_event,
    update_event,
    toggle_event,
    delete_event,
    get_event_stats,
    serialize_event,
)


def _events_response(events):
    return jsonify({'events': [serialize_event(e) for e in events]})


@api_bp.route('/events')
def api_get_events():
    return _events_response(get_events())


@api_bp.route('/events/today')
def api_get_todays_events():
    return _events_response(get_todays_events())


@api_bp.route('/events/past')
def api_get_past_events():
    default_limit = current_app.config.get('PAST_EVENTS_LIMIT', 10)
    limit = request.args.get('limit', default=default_limit, type=int)
    return _events_response(get_past_events(limit=max(limit, 1)))


@api_bp.route('/events/disabled')
def api_get_disabled_events():
    return _events_response(get_disabled_events())


@api_bp.route('/events/<eid>')
def api_get_event(eid):
    return jsonify({'event': serialize_event(require_event(eid))})


@api_bp.route('/events', methods=['POST'])
def api_add_event():
    event = add_event(json_body())
    return jsonify({
        'message': 'Event created successfully',
        'event': serialize_event(event),
    }), 201


@api_bp.route('/events/<eid>', methods=['PUT'])
def api_update_event(eid):
    event = update_event(eid, json_body())
    return jsonify({
        'message': 'Event updated successfully',
        'event': serialize_event(event),
    })


@api_bp.route('/events/<eid>/toggle', methods=['PATCH'])
def api_toggle_event(eid):
    event = toggle_event(eid)
    state = 'activated' if event.is_active else 'deactivated'
    return jsonify({
        'message': f'Event {state} successfully',
        'event': serialize_event(event),
    })


@api_bp.route('/events/<eid>', methods=['DELETE'])
def api_delete_event(eid):
    delete_event(eid)
    return jsonify({'message': 'Event deleted successfully'})


@api_bp.route('/events/<eid>/stats')
def api_get_event_stats(eid):
    return jsonify({'stats': get_event_stats(eid)})
