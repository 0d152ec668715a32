from flask import current_app, jsonify

from catfacts.mailer import send_daily_fact
from catfacts.models import CatFact, Subscriber
from catfacts.utils import err


def register(app):
    @app.route('/api/mail/send-now', methods=['POST'])
    def send_now():
        """Manuell: verschickt den täglichen Cat Fact sofort."""
        client = current_app.config.get('MAILGUN_CLIENT')
        if client is None:
            return err('Mailgun is not configured', 503)
        return jsonify(send_daily_fact(client))

    @app.route('/api/stats')
    def stats():
        return jsonify({
            'catfacts': CatFact.count(),
            'subscribers': Subscriber.count(),
        })
