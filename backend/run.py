import os

from flagquiz import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # SocketIO server so timer-driven state updates reach clients in dev
    port = int(os.environ.get('PORT', '5000'))
    socketio.run(app, port=port, debug=True, allow_unsafe_werkzeug=True)
