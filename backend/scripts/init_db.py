# scripts/init_db.py

import os, sys
sys.path.append(os.path.dirname(os.path.dirname(__file__)))  # puts backend/ on PYTHONPATH

from app.core.logging import setup_logging
from app.db.base import init_db
from app.db.seed import seed_initial_data

if __name__ == "__main__":
    setup_logging()
    init_db()
    seed_initial_data()
    print("Database initialised.")
