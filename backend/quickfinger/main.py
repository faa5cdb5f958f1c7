from flask import Blueprint, current_app, jsonify, request

from quickfinger.services.leaderboard.store import TOP_PLAYERS_LIMIT

main = Blueprint('main', __name__)

MAX_LIMIT = 100


@main.route('/health')
def health():
    return jsonify({
        'status': 'ok',
        'connections': len(current_app.extensions['session_registry']),
        'players': len(current_app.extensions['leaderboard_store']),
    })


@main.route('/api/leaderboard')
def leaderboard():
    limit = request.args.get('limit', TOP_PLAYERS_LIMIT, type=int)
    limit = min(max(limit, 1), MAX_LIMIT)
    players = current_app.extensions['leaderboard_store'].top_players(limit)
    return jsonify({'players': [p.to_dict() for p in players]})
