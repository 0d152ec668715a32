from flask import jsonify, request

from catfacts.models import CatFact
from catfacts.utils import err, log


def register(app):
    @app.route('/')
    def health_check():
        return 'It works!', 200, {'Content-Type': 'text/plain; charset=utf-8'}

    @app.route('/catfact')
    def get_record():
        """Random cat fact."""
        fact = CatFact.random()
        if fact is None:
            return err('No cat facts stored yet', 404)
        return jsonify({'fact': fact.fact})

    @app.route('/catfact/create', methods=['POST'])
    def create_record():
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or 'fact' not in data:
            return err("Expected a JSON object with a 'fact' field")
        try:
            fact = CatFact.create(data['fact'])
        except ValueError as e:
            return err(str(e))
        log(f'Cat fact #{fact.id} created')
        return jsonify({'id': fact.id, 'fact': fact.fact}), 201
