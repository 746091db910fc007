import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
DATABASE_PATH = os.path.join(BASE_DIR, 'data', 'checkin.db')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', f"sqlite:///{DATABASE_PATH}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DEBUG = os.environ.get('FLASK_DEBUG', '0') in {'1', 'true', 'yes'}

    JWT_SECRET = os.environ.get('JWT_SECRET', 'checkin-dev-secret-change-me-before-deploying')
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_HOURS = int(os.environ.get('JWT_EXPIRES_HOURS', '8'))
    BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', '12'))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    PAST_EVENTS_LIMIT = 10
    SEARCH_LIMIT = 20
    PORT = int(os.environ.get('PORT', '3001'))
