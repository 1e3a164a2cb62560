import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY')
    BASE_URL = os.environ.get('BASE_URL')

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or f'sqlite:///{os.path.join(BASE_DIR, "rimappa.db")}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH', 2 * 1024 * 1024))  # CSV uploads

    # MapTiler is used both for geocoding and for the map tiles
    MAPTILER_API_KEY = os.environ.get('MAPTILER_API_KEY')
    GEOCODER_URL = os.environ.get('GEOCODER_URL', 'https://api.maptiler.com/geocoding')
    GEOCODER_TIMEOUT = float(os.environ.get('GEOCODER_TIMEOUT', 5))
    GEOCODER_LANGUAGE = os.environ.get('GEOCODER_LANGUAGE', 'es')
    GEOCODER_COUNTRY = os.environ.get('GEOCODER_COUNTRY', 'ar')

    IMPORT_CSV_PATH = os.environ.get('IMPORT_CSV_PATH') or os.path.join(BASE_DIR, 'data', 'competitions.csv')

    # Default map viewport (Buenos Aires)
    MAP_CENTER = (-34.6037, -58.3815)
    MAP_ZOOM = 12

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    BASE_URL = 'http://localhost:5000'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    MAPTILER_API_KEY = None
    LOG_LEVEL = 'DEBUG'
