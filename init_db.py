"""
Database initialization script
Creates the users and products tables on the configured database
"""
from storeback.database import engine, Base
from storeback.models.user import User  # noqa: F401
from storeback.models.products import Product  # noqa: F401
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def init_db():
    """Initialize database with all tables"""
    try:
        logger.info(f"Creating tables: {', '.join(sorted(Base.metadata.tables))}")
        Base.metadata.create_all(bind=engine)
        logger.info("✓ Database tables created successfully!")
        logger.info("You can now start the FastAPI server.")

    except Exception as e:
        logger.error(f"✗ Error initializing database: {str(e)}")
        raise

if __name__ == "__main__":
    init_db()
