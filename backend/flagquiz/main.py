from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the flag quiz server!'})

@main.route('/health')
def health():
    registry = current_app.extensions['quiz_sessions']
    return jsonify({'status': 'ok', 'sessions': len(registry)})
