"""Create the Postgres database named in DATABASE_URL, then migrate it."""

from __future__ import annotations

from urllib.parse import urlparse

import psycopg2
from psycopg2 import sql

from app.core.config import get_config
from app.database.init_db import init_db


def create_database() -> None:
    db_url = get_config().DATABASE_URL
    if db_url.startswith("sqlite"):
        print("SQLite database is created on first migration.")
        init_db()
        return

    result = urlparse(db_url.replace("+psycopg2", ""))
    database = result.path[1:]
    conn = psycopg2.connect(
        dbname="postgres",
        user=result.username,
        password=result.password,
        host=result.hostname,
        port=result.port,
    )
    conn.autocommit = True
    try:
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (database,))
            if cursor.fetchone() is None:
                print(f"Creating database '{database}'...")
                cursor.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(database)))
            else:
                print(f"Database '{database}' already exists.")
    finally:
        conn.close()

    init_db()


if __name__ == "__main__":
    create_database()
