from flask import Blueprint, current_app, jsonify

from quizlive.questions import QUESTION_BANK

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the quiz game server!'})


@main.route('/health')
def health():
    directory = current_app.extensions['quizlive'].directory
    return jsonify({
        'status': 'ok',
        'rooms': len(directory),
        'open_rooms': len(directory.open_rooms()),
    })


@main.route('/api/questions')
def list_questions():
    return jsonify({'questions': [q.to_dict() for q in QUESTION_BANK]})
