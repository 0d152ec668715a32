import os

from flask import jsonify

from catfacts import utils
from catfacts.utils import log


def register(app):
    @app.route('/api/logs')
    def get_logs():
        """Return logs as array of lines, newest first."""
        if not os.path.exists(utils.LOG_FILE):
            return jsonify([])
        with open(utils.LOG_FILE, 'r', encoding='utf-8') as f:
            lines = f.readlines()
        lines = [l.rstrip('\n') for l in lines if l.strip()]
        lines.reverse()
        return jsonify(lines)

    @app.route('/api/logs/clear', methods=['POST'])
    def clear_logs():
        """Clear the logs file."""
        if os.path.exists(utils.LOG_FILE):
            os.remove(utils.LOG_FILE)
        log('Logs cleared', 'INFO')
        return jsonify({'status': 'ok'})
