"""
Persistence layer: SQLAlchemy models plus the process-wide DBStorage.

The storage binds to DATABASE_URL (a local SQLite file when unset).
"""
from os import getenv

from dotenv import load_dotenv

from models.db_storage import DBStorage

load_dotenv()

storage = DBStorage(getenv("DATABASE_URL"))
storage.reload()
