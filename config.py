import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

base_dir : str = os.path.dirname(os.path.realpath(__file__))


class Config:
    SQLALCHEMY_DATABASE_URI : str = os.getenv('DATABASE_URL', 'sqlite:///blog.db')
    SQLALCHEMY_TRACK_MODIFICATIONS : bool = False
    # Directory holding the static pages; unset means no asset store is bound.
    ASSETS_DIR : Optional[str] = os.getenv('ASSETS_DIR', os.path.join(base_dir, 'public'))
    CORS_ALLOW_ORIGIN : str = os.getenv('CORS_ALLOW_ORIGIN', '*')
    LOG_LEVEL : str = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING : bool = True
    SQLALCHEMY_DATABASE_URI : str = 'sqlite://'
    ASSETS_DIR : Optional[str] = None
