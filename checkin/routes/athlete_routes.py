from flask import current_app, jsonify, request

from . import api_bp, json_body
from ..queries import (
    get_athletes,
    require_athlete,
    add_athlete,
    update_athlete,
    delete_athlete,
    search_athletes,
    serialize_athlete,
)


@api_bp.route('/athletes')
def api_get_athletes():
    return jsonify({'athletes': [serialize_athlete(a) for a in get_athletes()]})


@api_bp.route('/athletes/search')
def api_search_athletes():
    query = request.args.get('query', '')
    limit = current_app.config.get('SEARCH_LIMIT', 20)
    athletes = search_athletes(query, limit=limit)
    return jsonify({'athletes': [serialize_athlete(a) for a in athletes]})


@api_bp.route('/athletes/<aid>')
def api_get_athlete(aid):
    return jsonify({'athlete': serialize_athlete(require_athlete(aid))})


@api_bp.route('/athletes', methods=['POST'])
def api_add_athlete():
    athlete = add_athlete(json_body())
    return jsonify({
        'message': 'Athlete created successfully',
        'athlete': serialize_athlete(athlete),
    }), 201


@api_bp.route('/athletes/<aid>', methods=['PUT'])
def api_update_athlete(aid):
    athlete = update_athlete(aid, json_body())
    return jsonify({
        'message': 'Athlete updated successfully',
        'athlete': serialize_athlete(athlete),
    })


@api_bp.route('/athletes/<aid>', methods=['DELETE'])
def api_delete_athlete(aid):
    delete_athlete(aid)
    return jsonify({'message': 'Athlete deleted successfully'})
