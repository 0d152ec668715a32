from catfacts.model import Model, _lock


def normalize_email(raw) -> str:
    """Strip + lowercase, raises ValueError for anything that is not an address."""
    if not isinstance(raw, str):
        raise ValueError("'email' must be a string")
    email = raw.strip().lower()
    local, sep, domain = email.partition('@')
    if not sep or not local or '@' in domain or '.' not in domain:
        raise ValueError(f"Invalid email address: {raw!r}")
    if domain.startswith('.') or domain.endswith('.') or any(c.isspace() for c in email):
        raise ValueError(f"Invalid email address: {raw!r}")
    return email


class Subscriber(Model):
    """
    Eine E-Mail-Adresse, die den täglichen Cat Fact bekommt.
    Gleichzeitig Mitglied der Mailgun-Liste mail@<domain> (falls konfiguriert).
    Eine Adresse existiert höchstens einmal (UNIQUE-Index auf email).
    """
    email: str = ""

    @classmethod
    def update_table(cls) -> None:
        super().update_table()
        table = cls.get_tablename()
        with _lock:
            # Altbestand: Duplikate vor dem Index entfernen, älteste Zeile bleibt
            Model.execute(
                f"DELETE FROM {table} WHERE id NOT IN (SELECT MIN(id) FROM {table} GROUP BY email)"
            )
            Model.execute(f"CREATE UNIQUE INDEX IF NOT EXISTS {table}_email_unique ON {table} (email)")

    def validate(self) -> None:
        self.email = normalize_email(self.email)
        other = Subscriber.by_email(self.email)
        if other and other.id != self.id:
            raise ValueError(f"{self.email} is already subscribed")

    @classmethod
    def by_email(cls, email: str) -> 'Subscriber | None':
        rows = cls.get_list(
            f"SELECT * FROM {cls.get_tablename()} WHERE email = ? ORDER BY id LIMIT 1",
            [email.strip().lower()]
        )
        return rows[0] if rows else None

    @classmethod
    def get_or_create(cls, email: str) -> tuple['Subscriber', bool]:
        """(subscriber, created). Check und Insert unter einem Lock."""
        with _lock:
            existing = cls.by_email(email)
            if existing:
                return existing, False
            sub = cls({'email': email})
            sub.validate()
            sub.save()
            return sub, True

    @classmethod
    def delete_by_email(cls, email: str) -> int:
        return Model.execute(
            f"DELETE FROM {cls.get_tablename()} WHERE email = ?", [email.strip().lower()]
        )

    @classmethod
    def emails(cls) -> list[str]:
        rows = Model.query(f"SELECT email FROM {cls.get_tablename()} ORDER BY id")
        return [r['email'] for r in rows]
