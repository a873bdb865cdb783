import os
import sqlite3
import threading
from contextlib import contextmanager
from urllib.parse import urlparse

import psycopg2
import psycopg2.extras


class DatabaseManager:
    def __init__(self, db_url: str):
        self.db_url = db_url
        self.parsed_url = urlparse(db_url)
        self.db_type = self.parsed_url.scheme
        # Held around every write so upserts and delete-then-insert
        # sequences from different callers never interleave.
        self.write_lock = threading.RLock()

    def get_connection(self):
        """Get a raw database connection."""
        if self.db_type == 'sqlite':
            # Remove 'sqlite:///' or 'sqlite://' prefix
            path = self.db_url.replace('sqlite:///', '').replace('sqlite://', '')
            conn = sqlite3.connect(path)
            conn.row_factory = sqlite3.Row  # Access columns by name
            return conn
        elif self.db_type == 'postgresql' or self.db_type == 'postgres':
            return psycopg2.connect(self.db_url, cursor_factory=psycopg2.extras.RealDictCursor)
        else:
            raise ValueError(f"Unsupported database type: {self.db_type}")

    def placeholder_query(self, query: str) -> str:
        """Queries are written with %s placeholders; sqlite wants ?."""
        if self.db_type == 'sqlite':
            return query.replace('%s', '?')
        return query

    @contextmanager
    def transaction(self):
        """Yield a connection whose statements commit together, under the write lock."""
        with self.write_lock:
            conn = self.get_connection()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    def execute_script(self, script: str):
        """Execute a raw SQL script."""
        conn = self.get_connection()
        try:
            cursor = conn.cursor()
            cursor.executescript(script) if self.db_type == 'sqlite' else cursor.execute(script)
            conn.commit()
        finally:
            conn.close()

    def init_db(self):
        """Create every table the engine needs, leaving existing data alone."""
        if self.db_type == 'sqlite':
            path = self.db_url.replace('sqlite:///', '').replace('sqlite://', '')
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self.execute_script(CREATE_SCRIPT_SQLITE)
        else:
            self.execute_script(CREATE_SCRIPT_POSTGRES)

    def reset_db(self):
        """Reset the database by dropping and recreating all tables."""
        self.execute_script(DROP_SCRIPT)
        self.init_db()


DROP_SCRIPT = """
DROP TABLE IF EXISTS addon_image;
DROP TABLE IF EXISTS game_compatibility;
DROP TABLE IF EXISTS manual_dependency;
DROP TABLE IF EXISTS addon_dependency;
DROP TABLE IF EXISTS installed_addon;
DROP TABLE IF EXISTS addon_dir;
DROP TABLE IF EXISTS addon_detail;
DROP TABLE IF EXISTS addon;
DROP TABLE IF EXISTS category_parent;
DROP TABLE IF EXISTS category;
"""

# Dates are stored as ISO-8601 text in sqlite and as timestamptz in postgres.
CREATE_SCRIPT_SQLITE = """
CREATE TABLE IF NOT EXISTS category (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    icon TEXT,
    file_count INTEGER
);

CREATE TABLE IF NOT EXISTS category_parent (
    id INTEGER NOT NULL,
    parent_id INTEGER NOT NULL,
    PRIMARY KEY (id, parent_id)
);

CREATE TABLE IF NOT EXISTS addon (
    id INTEGER PRIMARY KEY,
    category_id INTEGER NOT NULL,
    version TEXT NOT NULL,
    date TEXT NOT NULL,
    name TEXT NOT NULL,
    author_name TEXT,
    file_info_url TEXT,
    download_total INTEGER,
    download_monthly INTEGER,
    favorite_total INTEGER,
    md5 TEXT,
    file_name TEXT,
    download TEXT
);

CREATE TABLE IF NOT EXISTS addon_detail (
    id INTEGER PRIMARY KEY,
    description TEXT,
    change_log TEXT,
    version TEXT
);

CREATE TABLE IF NOT EXISTS addon_dir (
    addon_id INTEGER NOT NULL,
    dir TEXT NOT NULL,
    PRIMARY KEY (addon_id, dir),
    FOREIGN KEY(addon_id) REFERENCES addon(id)
);

CREATE TABLE IF NOT EXISTS installed_addon (
    addon_id INTEGER PRIMARY KEY,
    version TEXT NOT NULL,
    date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS addon_dependency (
    addon_id INTEGER NOT NULL,
    dependency_dir TEXT NOT NULL,
    PRIMARY KEY (addon_id, dependency_dir)
);

CREATE TABLE IF NOT EXISTS manual_dependency (
    addon_dir TEXT PRIMARY KEY,
    satisfied_by INTEGER,
    "ignore" BOOLEAN
);

CREATE TABLE IF NOT EXISTS game_compatibility (
    addon_id INTEGER NOT NULL,
    seq INTEGER NOT NULL,
    version TEXT NOT NULL,
    name TEXT NOT NULL,
    PRIMARY KEY (addon_id, seq),
    FOREIGN KEY(addon_id) REFERENCES addon(id)
);

CREATE TABLE IF NOT EXISTS addon_image (
    addon_id INTEGER NOT NULL,
    seq INTEGER NOT NULL,
    thumbnail TEXT NOT NULL,
    image TEXT NOT NULL,
    PRIMARY KEY (addon_id, seq),
    FOREIGN KEY(addon_id) REFERENCES addon(id)
);
"""

CREATE_SCRIPT_POSTGRES = """
CREATE TABLE IF NOT EXISTS category (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    icon TEXT,
    file_count INTEGER
);

CREATE TABLE IF NOT EXISTS category_parent (
    id INTEGER NOT NULL,
    parent_id INTEGER NOT NULL,
    PRIMARY KEY (id, parent_id)
);

CREATE TABLE IF NOT EXISTS addon (
    id INTEGER PRIMARY KEY,
    category_id INTEGER NOT NULL,
    version TEXT NOT NULL,
    date TIMESTAMPTZ NOT NULL,
    name TEXT NOT NULL,
    author_name TEXT,
    file_info_url TEXT,
    download_total INTEGER,
    download_monthly INTEGER,
    favorite_total INTEGER,
    md5 TEXT,
    file_name TEXT,
    download TEXT
);

CREATE TABLE IF NOT EXISTS addon_detail (
    id INTEGER PRIMARY KEY,
    description TEXT,
    change_log TEXT,
    version TEXT
);

CREATE TABLE IF NOT EXISTS addon_dir (
    addon_id INTEGER NOT NULL REFERENCES addon(id),
    dir TEXT NOT NULL,
    PRIMARY KEY (addon_id, dir)
);

CREATE TABLE IF NOT EXISTS installed_addon (
    addon_id INTEGER PRIMARY KEY,
    version TEXT NOT NULL,
    date TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS addon_dependency (
    addon_id INTEGER NOT NULL,
    dependency_dir TEXT NOT NULL,
    PRIMARY KEY (addon_id, dependency_dir)
);

CREATE TABLE IF NOT EXISTS manual_dependency (
    addon_dir TEXT PRIMARY KEY,
    satisfied_by INTEGER,
    "ignore" BOOLEAN
);

CREATE TABLE IF NOT EXISTS game_compatibility (
    addon_id INTEGER NOT NULL REFERENCES addon(id),
    seq INTEGER NOT NULL,
    version TEXT NOT NULL,
    name TEXT NOT NULL,
    PRIMARY KEY (addon_id, seq)
);

CREATE TABLE IF NOT EXISTS addon_image (
    addon_id INTEGER NOT NULL REFERENCES addon(id),
    seq INTEGER NOT NULL,
    thumbnail TEXT NOT NULL,
    image TEXT NOT NULL,
    PRIMARY KEY (addon_id, seq)
);
"""
