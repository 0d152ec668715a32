"""
Mailgun Client

Trägt Subscriber in die Mailgun-Liste mail@<domain> ein und verschickt
die täglichen Cat-Fact-Mails über die Messages-API.
"""

from urllib.parse import quote

import certifi
import requests

from catfacts.utils import log

REQUEST_TIMEOUT = 10  # Seconds
SUBJECT = 'Your daily cat fact!'
BODY_TEMPLATE = (
    "Hey there! You're receiving an email because you're subscribed to Cat Facts, "
    "the number one source for facts about facts. \n\n Did you know? {fact}"
)


def send_mail_params(recipient: str, fact: str, sender: str) -> dict:
    return {
        'from': sender,
        'to': recipient,
        'subject': SUBJECT,
        'text': BODY_TEMPLATE.format(fact=fact),
    }


def sub_params(recipient: str) -> dict:
    return {
        'address': recipient,
        'subscribed': 'True',
        'upsert': 'yes',
    }


class MailgunClient:
    """Thin wrapper around the Mailgun HTTP API. Never raises on network errors."""

    def __init__(self, api_key: str, domain: str, api_base: str = 'https://api.mailgun.net/v3',
                 session: requests.Session = None):
        self.api_key = api_key
        self.domain = domain
        self.api_base = api_base.rstrip('/')
        self.session = session or requests.Session()

    @property
    def list_address(self) -> str:
        return f"mail@{self.domain}"

    @property
    def sender(self) -> str:
        return f"Cat Facts <{self.list_address}>"

    def members_endpoint(self) -> str:
        return f"{self.api_base}/lists/{self.list_address}/members"

    def messages_endpoint(self) -> str:
        return f"{self.api_base}/{self.list_address}/messages"

    def member_endpoint(self, email: str) -> str:
        return f"{self.members_endpoint()}/{quote(email, safe='@')}"

    def _request(self, method: str, url: str, what: str, data: dict = None) -> bool:
        try:
            response = self.session.request(
                method,
                url,
                data=data,
                auth=('api', self.api_key),
                timeout=REQUEST_TIMEOUT,
                verify=certifi.where(),
            )
        except requests.exceptions.Timeout:
            log(f'Mailgun {what}: timeout', 'ERROR')
            return False
        except requests.exceptions.RequestException as e:
            log(f'Mailgun {what}: {e}', 'ERROR')
            return False

        if 200 <= response.status_code < 300:
            return True
        log(f'Mailgun {what}: server returned {response.status_code} {response.text[:200]}', 'ERROR')
        return False

    def add_list_member(self, email: str) -> bool:
        return self._request('POST', self.members_endpoint(), f'add list member {email}', sub_params(email))

    def remove_list_member(self, email: str) -> bool:
        return self._request('DELETE', self.member_endpoint(email), f'remove list member {email}')

    def send_message(self, recipient: str, fact: str) -> bool:
        return self._request(
            'POST',
            self.messages_endpoint(),
            f'send to {recipient}',
            send_mail_params(recipient, fact, self.sender),
        )
