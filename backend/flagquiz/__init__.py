from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # In-memory quiz sessions; nothing about a session outlives the process
    from flagquiz.sessions import SessionRegistry
    flask_app.extensions['quiz_sessions'] = SessionRegistry(flask_app)

    from flagquiz.main import main
    flask_app.register_blueprint(main)

    from flagquiz.api.quiz import quiz
    # Mount quiz routes under /api to match frontend API client
    flask_app.register_blueprint(quiz, url_prefix='/api/quiz')

    # Register Socket.IO event handlers
    from flagquiz.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('seed-countries')
    def seed_countries_command():
        """Drops, recreates, and seeds the country table from the JSON dataset."""
        from flagquiz.dataset import CountryDataset
        from flagquiz.models import Country
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            dataset = CountryDataset.from_json(flask_app.config['COUNTRIES_FILE'])
            for record in dataset.get_all():
                db.session.add(Country.from_record(record))

            db.session.commit()
            print(f'Seeded {dataset.length()} countries!')

    flask_app.cli.add_command(seed_countries_command)

    return flask_app
