# backend/scripts/run_cleanup.py
"""Runs one retention sweep outside the server (e.g. from cron), using the same settings."""
import sys
import os

# --- Path Setup ---
script_dir = os.path.dirname(os.path.abspath(__file__))
backend_path = os.path.dirname(script_dir)
sys.path.append(backend_path)

from menu_portal.config import settings
from menu_portal.database.connection import Base, SessionLocal, engine
from menu_portal.models import Submission
from menu_portal.services.cleanup import CleanupService
from menu_portal.utils.logging_setup import init_logging

if __name__ == "__main__":
    init_logging(settings)
    Base.metadata.create_all(bind=engine)
    deleted = CleanupService(settings, SessionLocal).run()
    print(f"Deleted {deleted} expired submission(s).")
