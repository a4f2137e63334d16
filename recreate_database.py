"""
Drop and recreate the entire Postgres database with fresh schema
WARNING: This will delete ALL data!
"""

import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
import logging
from storeback.core.config import settings
from storeback.database import Base, engine
from storeback.models import Product, User  # noqa: F401

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def drop_and_create_database():
    """Drop the existing database and create a fresh one"""
    db_name = settings.postgres_db

    try:
        # Connect to PostgreSQL server (not to specific database)
        logger.info("Connecting to PostgreSQL server...")
        conn = psycopg2.connect(
            host=settings.postgres_host,
            port=settings.postgres_port,
            user=settings.postgres_user,
            password=settings.postgres_password,
            database="postgres"  # Connect to default postgres database
        )
        conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cursor = conn.cursor()

        # Terminate existing connections to the database
        logger.info(f"Terminating existing connections to '{db_name}'...")
        cursor.execute(
            """
            SELECT pg_terminate_backend(pg_stat_activity.pid)
            FROM pg_stat_activity
            WHERE pg_stat_activity.datname = %s
            AND pid <> pg_backend_pid();
            """,
            (db_name,)
        )

        # Drop the database
        logger.info(f"Dropping database '{db_name}'...")
        cursor.execute(sql.SQL("DROP DATABASE IF EXISTS {}").format(sql.Identifier(db_name)))
        logger.info(f"✓ Database '{db_name}' dropped successfully")

        # Create fresh database
        logger.info(f"Creating fresh database '{db_name}'...")
        cursor.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(db_name)))
        logger.info(f"✓ Database '{db_name}' created successfully")

        cursor.close()
        conn.close()

        # Create all tables using SQLAlchemy
        logger.info("Creating all tables with SQLAlchemy...")
        Base.metadata.create_all(bind=engine)
        logger.info("✓ All tables created successfully")

    except Exception as e:
        logger.error(f"Error during database recreation: {e}")
        raise

if __name__ == "__main__":
    if settings.database_url.startswith("sqlite"):
        raise SystemExit("DATABASE_URL points at SQLite; this script only manages Postgres databases")
    response = input("⚠️  WARNING: This will DELETE ALL DATA! Are you sure? (yes/no): ")
    if response.lower() == "yes":
        drop_and_create_database()
    else:
        logger.info("Operation cancelled.")
