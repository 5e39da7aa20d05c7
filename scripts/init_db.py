"""
Database initialization script
Creates the database, all tables, and optionally registers a client
"""
import argparse
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from app.core.config import settings
from app.core.database import SessionLocal, create_tables
from app.models import Client


def create_database():
    """Create the database if it doesn't exist (PostgreSQL only)"""
    from sqlalchemy import create_engine

    if settings.DATABASE_URL and not settings.DATABASE_URL.startswith("postgresql"):
        print("ℹ️ Non-PostgreSQL DATABASE_URL, skipping database creation")
        return

    # Connect to postgres database to create our database
    postgres_url = f"postgresql://{settings.POSTGRES_USER}:{settings.POSTGRES_PWD}@{settings.POSTGRES_HOST}:{settings.POSTGRES_PORT}/postgres"
    temp_engine = create_engine(postgres_url, isolation_level="AUTOCOMMIT")

    with temp_engine.connect() as conn:
        # Check if database exists
        result = conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :name"),
            {"name": settings.POSTGRES_DB},
        )
        exists = result.fetchone() is not None

        if not exists:
            conn.execute(text(f'CREATE DATABASE "{settings.POSTGRES_DB}"'))
            print(f"✅ Created database: {settings.POSTGRES_DB}")
        else:
            print(f"ℹ️ Database already exists: {settings.POSTGRES_DB}")

    temp_engine.dispose()


def register_client(slug: str, client_name: str, meta_ad_account_id: str = None):
    """Create or update a client by slug"""
    session = SessionLocal()

    try:
        client = session.query(Client).filter(Client.slug == slug).first()

        if not client:
            client = Client(slug=slug, client_name=client_name, meta_ad_account_id=meta_ad_account_id)
            session.add(client)
            print(f"✅ Created client: {slug}")
        else:
            client.client_name = client_name
            if meta_ad_account_id:
                client.meta_ad_account_id = meta_ad_account_id
            print(f"ℹ️ Updated client: {slug}")

        session.commit()
        print(f"   id: {client.id}")

    except Exception as e:
        session.rollback()
        print(f"❌ Error registering client: {e}")
        raise
    finally:
        session.close()


def main():
    parser = argparse.ArgumentParser(description="Initialize the analytics database")
    parser.add_argument("--skip-create-db", action="store_true", help="Do not create the database")
    parser.add_argument("--client-slug", help="Register a client with this slug")
    parser.add_argument("--client-name", help="Client display name (defaults to the slug)")
    parser.add_argument("--meta-ad-account", help="Meta ad account id (act_xxx)")
    args = parser.parse_args()

    print("=" * 50)
    print(f"{settings.APP_NAME} - Database Initialization")
    print("=" * 50)

    if not args.skip_create_db:
        create_database()

    print("Creating tables...")
    create_tables()
    print("✅ All tables created successfully")

    if args.client_slug:
        register_client(args.client_slug, args.client_name or args.client_slug, args.meta_ad_account)

    print("=" * 50)
    print("✅ Database initialization complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
