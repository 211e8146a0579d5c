# menu_portal/database/connection.py
import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from menu_portal.config import settings

# The database file lives next to the submission directories unless SQLITE_DB_FILE moves it
os.makedirs(os.path.dirname(os.path.abspath(settings.DATABASE_FILE)), exist_ok=True)

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

@event.listens_for(engine, "connect")
def _sqlite_pragmas(dbapi_connection, connection_record):
    # Requests and the cleanup thread write concurrently; wait for the lock instead of failing
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Request-scoped session for the routes; shared with the auth dependencies of the same request
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
