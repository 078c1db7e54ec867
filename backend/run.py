from quizlive import create_app, socketio

app = create_app()

if __name__ == '__main__':
    try:
        socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], allow_unsafe_werkzeug=True)
    finally:
        app.extensions['quizlive'].shutdown()
