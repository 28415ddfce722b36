import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(BASE_DIR, 'flagquiz.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Where sessions read countries from: 'file' (bundled JSON) or 'database' (seeded table)
    COUNTRY_SOURCE = os.environ.get('COUNTRY_SOURCE', 'file')
    COUNTRIES_FILE = os.environ.get('COUNTRIES_FILE') or os.path.join(BASE_DIR, 'flagquiz', 'data', 'countries.json')
    # Raise on operations the current game state forbids instead of ignoring them
    STRICT_TRANSITIONS = os.environ.get('STRICT_TRANSITIONS', '0') == '1'
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Seconds a session survives after its last socket disconnects. 0 ends it at once.
    SESSION_GRACE_SEC = float(os.environ.get('SESSION_GRACE_SEC', '30'))
    # Menu or finished sessions idle this long are dropped when a new one is created
    SESSION_IDLE_SEC = float(os.environ.get('SESSION_IDLE_SEC', '900'))
