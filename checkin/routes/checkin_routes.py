from flask import jsonify

from . import api_bp, json_body
from ..checkins import (
    create_checkin,
    delete_checkin,
    update_checkin,
    get_checkin,
    list_checkins,
    list_todays_checkins,
    list_checkins_for_athlete,
    list_checkins_for_event,
    get_stats_overview,
)


@api_bp.route('/checkins')
def api_get_checkins():
    return jsonify({'checkins': list_checkins()})


@api_bp.route('/checkins/today')
def api_get_todays_checkins():
    return jsonify({'checkins': list_todays_checkins()})


@api_bp.route('/checkins/stats')
@api_bp.route('/checkins/stats/overview')
def api_get_checkin_stats():
    return jsonify({'stats': get_stats_overview()})


@api_bp.route('/checkins/athlete/<aid>')
def api_get_athlete_checkins(aid):
    return jsonify({'checkins': list_checkins_for_athlete(aid)})


@api_bp.route('/checkins/event/<eid>')
def api_get_event_checkins(eid):
    return jsonify({'checkins': list_checkins_for_event(eid)})


@api_bp.route('/checkins/<cid>')
def api_get_checkin(cid):
    return jsonify({'checkin': get_checkin(cid)})


@api_bp.route('/checkins', methods=['POST'])
def api_create_checkin():
    data = json_body()
    checkin = create_checkin(data.get('athleteId'), data.get('eventId'), notes=data.get('notes'))
    return jsonify({
        'message': 'Check-in created successfully',
        'checkin': get_checkin(checkin.id),
    }), 201


@api_bp.route('/checkins/<cid>', methods=['PUT'])
def api_update_checkin(cid):
    checkin = update_checkin(cid, json_body())
    return jsonify({
        'message': 'Check-in updated successfully',
        'checkin': get_checkin(checkin.id),
    })


@api_bp.route('/checkins/<cid>', methods=['DELETE'])
def api_delete_checkin(cid):
    delete_checkin(cid)
    return jsonify({'message': 'Check-in deleted successfully'})
