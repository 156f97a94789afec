"""
Migration script to create all database tables

Run this script to create all database tables:
    python -m moviecatalog.migrations.create_all_tables
"""

from moviecatalog.database import engine, Base
# Import all models to ensure they're registered with Base
from moviecatalog.models import User, Movie, Genre, Review  # noqa: F401


def create_tables(bind=engine):
    """Create all database tables"""
    print("=" * 60)
    print("Creating all database tables...")
    print("=" * 60)

    try:
        # Create all tables defined in Base metadata
        Base.metadata.create_all(bind=bind)

        print("\nAll tables created successfully!")
        print("\nTables created:")
        for table in Base.metadata.sorted_tables:
            print(f"   - {table.name}")
        print("=" * 60)

    except Exception as e:
        print(f"\nError creating tables: {e}")
        raise


if __name__ == "__main__":
    create_tables()
