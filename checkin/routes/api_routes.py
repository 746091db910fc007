from flask import jsonify

from . import api_bp
from ..util import time_util
from ..util.time_util import Conversion


@api_bp.route('/health')
def api_health():
    return jsonify({'status': 'OK', 'timestamp': Conversion.format_timestamp(time_util.local_now())})
