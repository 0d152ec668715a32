"""
Daily Mailer - schickt allen Subscribern einmal am Tag denselben Cat Fact
"""

import threading
from datetime import datetime, time as dtime, timezone

from catfacts.config import parse_send_time
from catfacts.models import CatFact, Subscriber
from catfacts.utils import log

TICK_SECONDS = 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def send_daily_fact(client) -> dict:
    """Ein zufälliger Fact an alle Subscriber. Fehler pro Empfänger brechen nicht ab."""
    result = {'fact': None, 'sent': 0, 'failed': 0}
    fact = CatFact.random()
    if fact is None:
        log('Daily mail skipped: no cat facts stored', 'WARNING')
        return result
    result['fact'] = fact.fact

    emails = Subscriber.emails()
    for email in emails:
        if client.send_message(email, fact.fact):
            result['sent'] += 1
        else:
            result['failed'] += 1

    log(f"Daily mail: sent {result['sent']}, failed {result['failed']} (fact #{fact.id})")
    return result


class DailyMailer(threading.Thread):
    """
    Wacht jede Sekunde auf und verschickt höchstens einmal pro UTC-Tag,
    sobald die Uhrzeit send_time erreicht hat.
    Startet der Prozess nach send_time, wird erst am nächsten Tag gesendet.
    """

    def __init__(self, client, send_time: str = '00:00:00', clock=None):
        super().__init__(name='daily-mailer', daemon=True)
        self.client = client
        self.send_time = dtime(*parse_send_time(send_time))
        self.clock = clock or utc_now
        self._stop_event = threading.Event()

        now = self.clock()
        self.last_sent_date = now.date() if now.time() > self.send_time else None

    def tick(self, now: datetime) -> dict | None:
        today = now.date()
        if self.last_sent_date == today or now.time() < self.send_time:
            return None
        self.last_sent_date = today

        if self.client is None:
            log('Daily mail skipped: Mailgun not configured', 'WARNING')
            return None
        try:
            return send_daily_fact(self.client)
        except Exception as e:
            log(f'Daily mail failed: {e}', 'ERROR')
            return None

    def run(self):
        log(f'Daily mailer started, sending at {self.send_time.isoformat()} UTC')
        while not self._stop_event.wait(TICK_SECONDS):
            self.tick(self.clock())

    def stop(self):
        self._stop_event.set()
