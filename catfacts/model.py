import sqlite3
import threading
import time
from pathlib import Path
from typing import TypeVar, Type, Any, get_type_hints
from flask import request, jsonify

from catfacts.utils import err

T = TypeVar('T')
_conn: sqlite3.Connection = None
_conn_path: str = None
_lock = threading.RLock()
META_FIELDS = {'id', 'created_at', 'updated_at'}


class Model:
    """
        GET    /api/catfact      → JSON array
        GET    /api/catfact/5    → JSON object
        POST   /api/catfact      → create
        PUT    /api/catfact/5    → update
        DELETE /api/catfact/5    → delete

        Eine Connection pro Prozess. HTTP-Handler und der DailyMailer-Thread
        teilen sie sich, deshalb läuft jedes Statement unter _lock.
    """
    id: int = None
    created_at: int = 0
    updated_at: int = 0

    def __init__(self, data: dict[str, Any] = None):
        if data:
            props = self._props(self.__class__)
            for k, v in data.items():
                if k in props: setattr(self, k, v)

    def assign(self, data: dict[str, Any]) -> None:
        """Client input: only declared columns, meta columns are ignored."""
        writable = set(self._props(self.__class__)) - META_FIELDS
        unknown = [k for k in data if k not in writable and k not in META_FIELDS]
        if unknown:
            raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        for k, v in data.items():
            if k in writable: setattr(self, k, v)

    def to_dict(self) -> dict:
        return {k: getattr(self, k) for k in self._props(self.__class__)}

    def validate(self) -> None:
        """Hook for subclasses, raises ValueError on bad data."""

    # =========================================================================
    # Database
    # =========================================================================
    @staticmethod
    def connect(db_path: str | Path = None) -> sqlite3.Connection:
        global _conn, _conn_path
        with _lock:
            if db_path is not None and _conn is not None and str(db_path) != _conn_path:
                Model.close()
            if _conn is None:
                if db_path is None:
                    raise RuntimeError('Model.connect() needs a db_path before first use')
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
                _conn = sqlite3.connect(str(db_path), check_same_thread=False)
                _conn.row_factory = lambda c, r: dict(zip([col[0] for col in c.description], r))
                _conn_path = str(db_path)
            return _conn

    @staticmethod
    def close() -> None:
        global _conn, _conn_path
        with _lock:
            if _conn is not None:
                _conn.close()
            _conn = None
            _conn_path = None

    @staticmethod
    def _props(cls: type) -> dict[str, str]:
        props = {}
        hints = get_type_hints(cls) if hasattr(cls, '__annotations__') else {}
        for name, typ in hints.items():
            if name.startswith('_'): continue
            sql_type = 'TEXT'
            if typ == int: sql_type = 'INTEGER'
            elif typ == float: sql_type = 'REAL'
            props[name] = sql_type
        return props

    @classmethod
    def get_tablename(cls) -> str: return cls.__name__.lower()

    @classmethod
    def update_table(cls) -> None:
        table = cls.get_tablename()
        props = Model._props(cls)
        with _lock:
            conn = Model.connect()
            cols = [f"{n} {t}" + (' PRIMARY KEY AUTOINCREMENT' if n == 'id' else '') for n, t in props.items()]
            conn.execute(f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(cols)})")
            existing = {r['name'] for r in conn.execute(f"PRAGMA table_info({table})").fetchall()}
            for name, typ in props.items():
                if name not in existing:
                    conn.execute(f"ALTER TABLE {table} ADD COLUMN {name} {typ}")
            conn.commit()

    def save(self) -> None:
        cls = self.__class__
        table = cls.get_tablename()
        props = Model._props(cls)
        data = {k: getattr(self, k) for k in props if k != 'id'}
        with _lock:
            conn = Model.connect()
            if self.id is None:
                self.created_at = int(time.time())
                data['created_at'] = self.created_at
                cols = ', '.join(data.keys())
                placeholders = ', '.join(['?'] * len(data))
                cur = conn.execute(f"INSERT INTO {table} ({cols}) VALUES ({placeholders})", list(data.values()))
                self.id = cur.lastrowid
            else:
                self.updated_at = int(time.time())
                data['updated_at'] = self.updated_at
                sets = ', '.join([f"{k} = ?" for k in data.keys()])
                conn.execute(f"UPDATE {table} SET {sets} WHERE id = ?", list(data.values()) + [self.id])
            conn.commit()

    def delete(self) -> None:
        with _lock:
            conn = Model.connect()
            conn.execute(f"DELETE FROM {self.get_tablename()} WHERE id = ?", [self.id])
            conn.commit()

    @classmethod
    def by_id(cls: Type[T], id: int) -> T | None:
        with _lock:
            row = Model.connect().execute(f"SELECT * FROM {cls.get_tablename()} WHERE id = ?", [id]).fetchone()
        return cls(row) if row else None

    @classmethod
    def all(cls: Type[T], order: str = 'id DESC') -> list[T]:
        return cls.get_list(f"SELECT * FROM {cls.get_tablename()} ORDER BY {order}")

    @classmethod
    def get_list(cls: Type[T], sql: str, args: list = None) -> list[T]:
        with _lock:
            rows = Model.connect().execute(sql, args or []).fetchall()
        return [cls(row) for row in rows]

    @classmethod
    def count(cls, where: str = '1=1', args: list = None) -> int:
        with _lock:
            row = Model.connect().execute(
                f"SELECT COUNT(*) as c FROM {cls.get_tablename()} WHERE {where}", args or []
            ).fetchone()
        return row['c']

    @staticmethod
    def query(sql: str, args: list = None) -> list[dict]:
        with _lock:
            return Model.connect().execute(sql, args or []).fetchall()

    @staticmethod
    def execute(sql: str, args: list = None) -> int:
        """Runs a write statement and returns the affected row count."""
        with _lock:
            conn = Model.connect()
            cur = conn.execute(sql, args or [])
            conn.commit()
            return cur.rowcount

    # =========================================================================
    # API Routes - register with Flask app
    # =========================================================================
    @classmethod
    def register(cls, app):
        name = cls.get_tablename()
        cls.update_table()

        @app.route(f'/api/{name}', methods=['GET'], endpoint=f'{name}_all')
        def get_all():
            return jsonify([x.to_dict() for x in cls.all()])

        @app.route(f'/api/{name}/<int:id>', methods=['GET'], endpoint=f'{name}_one')
        def get_one(id):
            obj = cls.by_id(id)
            return jsonify(obj.to_dict()) if obj else err('Not found', 404)

        @app.route(f'/api/{name}', methods=['POST'], endpoint=f'{name}_create')
        def create():
            data = request.get_json(silent=True)
            if not isinstance(data, dict): return err('Expected a JSON object')
            obj = cls()
            # validate + save atomar, sonst rutschen Duplikate durch
            with _lock:
                try:
                    obj.assign(data)
                    obj.validate()
                except ValueError as e: return err(str(e))
                obj.save()
            return jsonify(obj.to_dict()), 201

        @app.route(f'/api/{name}/<int:id>', methods=['PUT'], endpoint=f'{name}_update')
        def update(id):
            obj = cls.by_id(id)
            if not obj: return err('Not found', 404)
            data = request.get_json(silent=True)
            if not isinstance(data, dict): return err('Expected a JSON object')
            with _lock:
                try:
                    obj.assign(data)
                    obj.validate()
                except ValueError as e: return err(str(e))
                obj.save()
            return jsonify(obj.to_dict())

        @app.route(f'/api/{name}/<int:id>', methods=['DELETE'], endpoint=f'{name}_delete')
        def delete(id):
            obj = cls.by_id(id)
            if not obj: return err('Not found', 404)
            obj.delete()
            return '', 204
