#!/usr/bin/env python3
"""
Cat Facts - Flask service

Speichert Cat Facts, verwaltet Subscriber und schickt ihnen täglich
einen zufälligen Fact über Mailgun.
"""

from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from catfacts import utils
from catfacts.config import load_config, mail_configured
from catfacts.mailer import DailyMailer
from catfacts.mailgun import MailgunClient
from catfacts.model import Model
from catfacts.models import CatFact, Subscriber
from catfacts.routes import catfact_routes, log_routes, mail_routes, subscriber_routes, test_routes
from catfacts.utils import err, log


def create_app(config: dict = None, mailgun_session=None) -> Flask:
    cfg = load_config(config)

    app = Flask(__name__)
    app.config.update(cfg)
    CORS(app)

    utils.init_paths(cfg['DATA_DIR'])

    # DB init
    Model.connect(cfg['DB_PATH'])
    CatFact.register(app)
    Subscriber.register(app)

    if mail_configured(cfg):
        app.config['MAILGUN_CLIENT'] = MailgunClient(
            cfg['MAILGUN_KEY'], cfg['MAILGUN_URL'], cfg['MAILGUN_API_BASE'], session=mailgun_session
        )
    else:
        app.config['MAILGUN_CLIENT'] = None
        log('MAILGUN_KEY / MAILGUN_URL not set, subscribers are stored locally only', 'WARNING')

    catfact_routes.register(app)
    subscriber_routes.register(app)
    mail_routes.register(app)
    log_routes.register(app)
    if cfg['TESTING']:
        test_routes.register(app)

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return err(e.description, e.code)
        log(f'Unhandled error: {e!r}', 'ERROR')
        return err(f'Internal error: {e}', 500)

    return app


def start_mailer(app: Flask) -> DailyMailer | None:
    if not app.config['MAIL_ENABLED']:
        log('Daily mailer disabled (MAIL_ENABLED=0)')
        return None
    mailer = DailyMailer(app.config['MAILGUN_CLIENT'], app.config['MAIL_SEND_TIME'])
    mailer.start()
    return mailer


def main():
    app = create_app()
    mailer = start_mailer(app)
    log(f"Cat Facts listening on port {app.config['PORT']}")
    try:
        app.run(host='0.0.0.0', port=app.config['PORT'], threaded=True)
    finally:
        if mailer:
            mailer.stop()


if __name__ == '__main__': main()
