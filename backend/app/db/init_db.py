"""
Database initialization script.
"""
import logging
from app.db.session import init_db

# Import all models so SQLAlchemy can register them
from app.models import User, Trip, TripShare  # noqa: F401

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully!")
