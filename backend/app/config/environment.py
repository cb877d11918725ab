from pathlib import Path
import os
from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
if not JWT_SECRET_KEY:
    raise ValueError("JWT_SECRET_KEY is not set")

JWT_ALGORITHM = os.getenv('JWT_ALGORITHM')
if not JWT_ALGORITHM:
    raise ValueError("JWT_ALGORITHM is not set")

JWT_ACCESS_TOKEN_EXPIRE_MINUTES = os.getenv('JWT_ACCESS_TOKEN_EXPIRE_MINUTES')
if not JWT_ACCESS_TOKEN_EXPIRE_MINUTES:
    raise ValueError("JWT_ACCESS_TOKEN_EXPIRE_MINUTES is not set")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

APP_ENV = os.getenv('APP_ENV', 'development').lower()

USE_SQLITE = os.getenv('USE_SQLITE', 'false').lower() == 'true'
SQLITE_PATH = os.getenv('SQLITE_PATH', './movie_reviews.db')

DB_USER = os.getenv('DB_USER')
DB_PASSWORD = os.getenv('DB_PASSWORD')
DB_HOST = os.getenv('DB_HOST')
DB_PORT = os.getenv('DB_PORT', '5432')
DB_NAME = os.getenv('DB_NAME')

if not USE_SQLITE:
    if not DB_USER:
        raise ValueError("DB_USER is not set")
    if not DB_PASSWORD:
        raise ValueError("DB_PASSWORD is not set")
    if not DB_HOST:
        raise ValueError("DB_HOST is not set")
    if not DB_NAME:
        raise ValueError("DB_NAME is not set")
