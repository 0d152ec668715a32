"""
Config - Umgebungsvariablen und Defaults
"""

import os
from pathlib import Path

DEFAULT_PORT = 3000
DEFAULT_SEND_TIME = '00:00:00'
MAILGUN_API_BASE = 'https://api.mailgun.net/v3'


def get_data_dir() -> Path:
    """Datenverzeichnis (SQLite + Logs)"""
    env = os.environ.get('CATFACTS_DATA_DIR')
    if env:
        return Path(env)
    return Path(__file__).parent / 'catfacts_data'


def parse_send_time(value: str) -> tuple[int, int, int]:
    """'HH:MM:SS' -> (h, m, s). Raises ValueError on garbage."""
    parts = value.strip().split(':')
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"MAIL_SEND_TIME must look like HH:MM:SS, got {value!r}")
    h, m, s = (int(p) for p in parts)
    if h > 23 or m > 59 or s > 59:
        raise ValueError(f"MAIL_SEND_TIME out of range: {value!r}")
    return h, m, s


def load_config(overrides: dict = None) -> dict:
    """Liest die Konfiguration aus der Umgebung, overrides gewinnen."""
    data_dir = get_data_dir()
    config = {
        'DATA_DIR': data_dir,
        'DB_PATH': Path(os.environ.get('CATFACTS_DB') or data_dir / 'app.db'),
        'MAILGUN_KEY': os.environ.get('MAILGUN_KEY', ''),
        'MAILGUN_URL': os.environ.get('MAILGUN_URL', ''),
        'MAILGUN_API_BASE': os.environ.get('MAILGUN_API_BASE', MAILGUN_API_BASE),
        'MAIL_SEND_TIME': os.environ.get('MAIL_SEND_TIME', DEFAULT_SEND_TIME),
        'MAIL_ENABLED': os.environ.get('MAIL_ENABLED', '1') not in ('0', 'false', 'no'),
        'PORT': int(os.environ.get('PORT', DEFAULT_PORT)),
        'TESTING': False,
    }
    if overrides:
        config.update(overrides)
        # DB folgt dem Datenverzeichnis, wenn nur das überschrieben wurde
        if 'DATA_DIR' in overrides and 'DB_PATH' not in overrides and not os.environ.get('CATFACTS_DB'):
            config['DB_PATH'] = Path(overrides['DATA_DIR']) / 'app.db'
    config['DATA_DIR'] = Path(config['DATA_DIR'])
    config['DB_PATH'] = Path(config['DB_PATH'])
    parse_send_time(config['MAIL_SEND_TIME'])
    return config


def mail_configured(config: dict) -> bool:
    return bool(config.get('MAILGUN_KEY')) and bool(config.get('MAILGUN_URL'))
