#!/usr/bin/env python3
"""
Initialize the ledger database.

Run this script to create the database schema at the configured location.
"""
from ledger.config.settings import LedgerSettings
from ledger.database.connection import DatabaseConfig, DatabaseManager, SCHEMA_PATH

def main():
    """initialize the database."""
    settings = LedgerSettings.load()

    config = DatabaseConfig(settings.db_path)
    print(f"Initializing database at: {config.db_path}")

    with DatabaseManager(config) as db:
        print(f"Executing schema from: {SCHEMA_PATH}")
        db.initialize()

        cursor = db.get_connection().execute(
            "SELECT version, description FROM schema_version ORDER BY version DESC LIMIT 1"
        )
        row = cursor.fetchone()

        if row:
            print(f"✓ Database initialized successfully!")
            print(f"  Schema version: {row['version']}")
            print(f"  Description: {row['description']}")
        else:
            print("✗ Database initialization may have failed")

if __name__ == "__main__":
    main()
