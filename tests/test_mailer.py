"""
Daily mailing - batch send, the once-a-day scheduler and the manual trigger.
"""
from datetime import datetime, timedelta, timezone

import pytest

from catfacts.app import create_app
from catfacts.mailer import DailyMailer, send_daily_fact
from catfacts.mailgun import BODY_TEMPLATE, SUBJECT
from catfacts.model import Model
from data_builder import DataBuilder


def at(day: int, h: int, m: int = 0, s: int = 0) -> datetime:
    return datetime(2024, 5, day, h, m, s, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self):
        return self.now


class TestSendDailyFact:

    def test_every_subscriber_gets_same_fact(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(3).with_subscribers(4).build()
        result = send_daily_fact(app.config['MAILGUN_CLIENT'])

        assert result['sent'] == 4
        assert result['failed'] == 0
        messages = mailgun.messages()
        assert len(messages) == 4
        assert {m['data']['text'] for m in messages} == {BODY_TEMPLATE.format(fact=result['fact'])}

    def test_message_shape(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_fact('Cats have whiskers on their legs.').with_subscriber('amy@example.com').build()
        send_daily_fact(app.config['MAILGUN_CLIENT'])

        msg = mailgun.messages()[0]
        assert msg['url'] == 'https://api.mailgun.net/v3/mail@example.org/messages'
        assert msg['auth'] == ('api', 'key-test')
        assert msg['data']['to'] == 'amy@example.com'
        assert msg['data']['from'] == 'Cat Facts <mail@example.org>'
        assert msg['data']['subject'] == SUBJECT
        assert msg['data']['text'].endswith('Did you know? Cats have whiskers on their legs.')
        assert msg['timeout'] > 0

    def test_recipients_in_subscription_order(self, app, api, clean_db, mailgun):
        emails = ['c@example.com', 'a@example.com', 'b@example.com']
        builder = DataBuilder(api).with_facts(1)
        for e in emails:
            builder.with_subscriber(e)
        builder.build()
        send_daily_fact(app.config['MAILGUN_CLIENT'])
        assert [m['data']['to'] for m in mailgun.messages()] == emails

    def test_failures_do_not_abort_batch(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(1).with_subscribers(3).build()
        emails = [s['email'] for s in api.get('/api/subscriber').get_json()]
        mailgun.fail_for.add(emails[0])
        mailgun.raise_for.add(emails[1])

        result = send_daily_fact(app.config['MAILGUN_CLIENT'])
        assert result['sent'] == 1
        assert result['failed'] == 2
        assert len(mailgun.messages()) == 3

    def test_no_facts_sends_nothing(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_subscribers(2).build()
        result = send_daily_fact(app.config['MAILGUN_CLIENT'])
        assert result == {'fact': None, 'sent': 0, 'failed': 0}
        assert mailgun.messages() == []

    def test_no_subscribers_sends_nothing(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(2).build()
        result = send_daily_fact(app.config['MAILGUN_CLIENT'])
        assert result['fact'] is not None
        assert result['sent'] == 0
        assert mailgun.messages() == []


class TestDailyMailer:

    def test_sends_once_when_time_reached(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(1).with_subscribers(2).build()
        mailer = DailyMailer(app.config['MAILGUN_CLIENT'], '00:00:00', clock=FixedClock(at(1, 23, 59, 59)))

        assert mailer.tick(at(1, 23, 59, 59)) is None
        result = mailer.tick(at(2, 0, 0, 0))
        assert result['sent'] == 2
        assert mailer.tick(at(2, 0, 0, 1)) is None
        assert mailer.tick(at(2, 15, 0, 0)) is None
        assert len(mailgun.messages()) == 2

    def test_sends_again_next_day(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(1).with_subscribers(1).build()
        mailer = DailyMailer(app.config['MAILGUN_CLIENT'], '08:30:00', clock=FixedClock(at(1, 7)))

        assert mailer.tick(at(1, 8, 29, 59)) is None
        assert mailer.tick(at(1, 8, 30, 0))['sent'] == 1
        assert mailer.tick(at(2, 8, 0, 0)) is None
        assert mailer.tick(at(2, 8, 30, 5))['sent'] == 1

    def test_missed_second_still_sends(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(1).with_subscribers(1).build()
        mailer = DailyMailer(app.config['MAILGUN_CLIENT'], '00:00:00', clock=FixedClock(at(1, 12)))
        # Tick skipped exactly midnight
        assert mailer.tick(at(2, 0, 0, 3))['sent'] == 1

    def test_start_after_send_time_waits_for_next_day(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(1).with_subscribers(1).build()
        mailer = DailyMailer(app.config['MAILGUN_CLIENT'], '06:00:00', clock=FixedClock(at(1, 9)))

        assert mailer.tick(at(1, 9, 0, 1)) is None
        assert mailgun.messages() == []
        assert mailer.tick(at(2, 6))['sent'] == 1

    def test_unconfigured_client_skips(self, app, clean_db):
        mailer = DailyMailer(None, '00:00:00', clock=FixedClock(at(1, 12)))
        assert mailer.tick(at(2, 0)) is None
        assert mailer.last_sent_date == at(2, 0).date()

    def test_errors_are_logged_not_raised(self, app, api, clean_db, mailgun):
        DataBuilder(api).with_facts(1).with_subscribers(1).build()
        mailer = DailyMailer(app.config['MAILGUN_CLIENT'], '00:00:00', clock=FixedClock(at(1, 12)))
        Model.execute('DROP TABLE subscriber')

        assert mailer.tick(at(2, 0)) is None
        logs = api.get('/api/logs').get_json()
        assert any('Daily mail failed' in line for line in logs)

    def test_bad_send_time_raises(self):
        with pytest.raises(ValueError):
            DailyMailer(None, '25:00:00')

    def test_thread_stops(self, app):
        mailer = DailyMailer(None, '00:00:00', clock=FixedClock(at(1, 12)))
        mailer.start()
        mailer.stop()
        mailer.join(timeout=5)
        assert not mailer.is_alive()


class TestSendNow:

    def test_send_now(self, api, clean_db, mailgun):
        DataBuilder(api).with_facts(2).with_subscribers(3).build()
        r = api.post('/api/mail/send-now')
        assert r.status_code == 200
        assert r.get_json()['sent'] == 3
        assert len(mailgun.messages()) == 3

    def test_send_now_without_mailgun_is_503(self, tmp_path):
        app = create_app({
            'DATA_DIR': tmp_path,
            'MAILGUN_KEY': '',
            'MAILGUN_URL': '',
            'MAIL_ENABLED': False,
        })
        try:
            r = app.test_client().post('/api/mail/send-now')
            assert r.status_code == 503
            assert app.test_client().post('/subscribe', json={'email': 'x@example.com'}).get_json()['list_member'] is False
        finally:
            Model.close()
