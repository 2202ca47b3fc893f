import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the package directory or the project root
env_path = Path(__file__).parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def _split_origins(value):
    origins = [o.strip() for o in value.split(',') if o.strip()]
    return origins if origins and origins != ['*'] else '*'


class Config:
    # "memory" keeps groups for the life of the process, "file" writes JSON to STORE_DIR
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'memory')
    STORE_DIR = os.environ.get('STORE_DIR', 'data')

    CORS_ORIGINS = _split_origins(os.environ.get('CORS_ORIGINS', '*'))

    # Share links point here; falls back to the request's host URL
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


class TestConfig(Config):
    TESTING = True
    STORE_BACKEND = 'memory'
    PUBLIC_BASE_URL = 'http://localhost:5173/'
    LOG_LEVEL = 'DEBUG'
