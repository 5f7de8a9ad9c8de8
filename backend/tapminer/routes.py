from flask import Blueprint, current_app, jsonify

from tapminer import get_game

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Tap Miner game server', 'status': 'ok'})


@main.route('/health')
def health():
    """Read-only probe: round phase, roster size and time left."""
    status = get_game(current_app).status()
    return jsonify({'status': 'healthy', **status})
