import glob
import itertools
import os
import time
from datetime import datetime
from pathlib import Path

# Wird von create_app gesetzt (init_paths)
TMP_PATH: Path = Path(__file__).parent / 'catfacts_data' / 'tmp'
LOG_FILE: Path = Path(__file__).parent / 'catfacts_data' / 'logs.txt'
MAX_ERR_FILES = 20
_err_seq = itertools.count()


def init_paths(data_dir: Path):
    """Initialisiert die Pfade für Logs und Fehlerdateien"""
    global TMP_PATH, LOG_FILE
    TMP_PATH = Path(data_dir) / 'tmp'
    LOG_FILE = Path(data_dir) / 'logs.txt'


def log(msg: str, level: str = 'INFO'):
    """Append a log entry to logs.txt."""
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    line = f"[{timestamp}] [{level}] {msg}\n"
    with open(LOG_FILE, 'a', encoding='utf-8') as f:
        f.write(line)


def err(msg: str, code: int = 400):
    """Return error JSON and log to tmp (max 20 files)."""
    TMP_PATH.mkdir(parents=True, exist_ok=True)
    # Delete oldest if 20+ files exist
    files = sorted(glob.glob(f"{TMP_PATH}/err_*.txt"))
    while len(files) >= MAX_ERR_FILES:
        os.remove(files.pop(0))
    with open(f"{TMP_PATH}/err_{time.time_ns()}_{next(_err_seq):06d}.txt", "w", encoding='utf-8') as f:
        f.write(f"{time.ctime()}\n{code} {msg}\n")
    return {"error": msg}, code
