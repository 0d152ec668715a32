from catfacts.model import Model


class CatFact(Model):
    """
    Ein Cat Fact. Wird per POST /catfact/create angelegt und zufällig
    ausgeliefert (GET /catfact) bzw. täglich an alle Subscriber gemailt.
    """
    fact: str = ""

    def validate(self) -> None:
        if not isinstance(self.fact, str):
            raise ValueError("'fact' must be a string")
        self.fact = self.fact.strip()
        if not self.fact:
            raise ValueError("'fact' must not be empty")

    @classmethod
    def create(cls, text: str) -> 'CatFact':
        fact = cls({'fact': text})
        fact.validate()
        fact.save()
        return fact

    @classmethod
    def random(cls) -> 'CatFact | None':
        rows = cls.get_list(f"SELECT * FROM {cls.get_tablename()} ORDER BY RANDOM() LIMIT 1")
        return rows[0] if rows else None
