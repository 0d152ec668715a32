from flask import current_app, jsonify, request

from catfacts.models import Subscriber, normalize_email
from catfacts.utils import err, log


def _email_from_request():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'email' not in data:
        raise ValueError("Expected a JSON object with an 'email' field")
    return normalize_email(data['email'])


def register(app):
    @app.route('/subscribe', methods=['POST'])
    def subscribe():
        """Mailgun-Liste + lokale Tabelle. Mailgun-Fehler werden nur geloggt."""
        try:
            email = _email_from_request()
        except ValueError as e:
            return err(str(e))

        client = current_app.config.get('MAILGUN_CLIENT')
        list_member = client.add_list_member(email) if client else False

        sub, created = Subscriber.get_or_create(email)
        data = sub.to_dict()
        data['list_member'] = list_member
        if not created:
            return jsonify(data), 200
        log(f'New subscriber {email} (list member: {list_member})')
        return jsonify(data), 201

    @app.route('/unsubscribe', methods=['POST'])
    def unsubscribe():
        try:
            email = _email_from_request()
        except ValueError as e:
            return err(str(e))
        if not Subscriber.delete_by_email(email):
            return err('Not subscribed', 404)

        client = current_app.config.get('MAILGUN_CLIENT')
        if client:
            client.remove_list_member(email)
        log(f'Unsubscribed {email}')
        return '', 204
