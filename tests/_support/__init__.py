"""
Test support utilities for spine-fixtures tests.

Schemas for the SQLite databases the integration tests load fixtures into,
and paths to the on-disk resources (config files and fixture groups).
"""

from __future__ import annotations

from pathlib import Path

import sqlalchemy as sa

RESOURCES_DIR = Path(__file__).parent.parent / "resources"
DB_CONFIG_DIR = RESOURCES_DIR / "db"
FIXTURES_DIR = RESOURCES_DIR / "fixtures"

# Environment variable the YAML configs under resources/db read the
# database directory from.
DB_DIR_ENV = "FIXTURE_TEST_DB_DIR"

BLOG_SCHEMA: dict[str, list[str]] = {
    "users": ["first_name", "last_name", "email"],
    "blogs": ["name", "user_id"],
    "posts": ["title", "body", "blog_id"],
    "comments": ["comment", "post_id", "user_id"],
}

MEMBERSHIP_SCHEMA: dict[str, list[str]] = {
    "members": ["name"],
    "roles": ["name"],
    "members_roles": ["member_id", "role_id"],
}

HOUSING_SCHEMA: dict[str, list[str]] = {
    "people": ["first_name", "last_name"],
    "houses": ["street_address", "city", "state", "zip"],
    "residents": ["person_id", "house_id"],
}

WIDGET_SCHEMA: dict[str, list[str]] = {
    "widgets": ["name"],
    "components": ["name", "widget_id"],
}


def create_schema(path: Path, schema: dict[str, list[str]]) -> Path:
    """Create a SQLite file at ``path`` with an ``id`` primary key per table.

    Columns ending in ``_id`` are integers, everything else is text.
    """
    metadata = sa.MetaData()
    for table, columns in schema.items():
        sa.Table(
            table,
            metadata,
            sa.Column("id", sa.Integer, primary_key=True),
            *(
                sa.Column(name, sa.Integer if name.endswith("_id") else sa.String)
                for name in columns
            ),
        )
    engine = sa.create_engine(f"sqlite:///{path}")
    metadata.create_all(engine)
    engine.dispose()
    return path


def sqlite_config(path: Path, **overrides: object) -> dict[str, object]:
    """Inline config mapping for the SQLite file at ``path``."""
    return {
        "adapter": "sqlite",
        "database": str(path),
        "username": "root",
        "password": None,
        **overrides,
    }


def row_count(path: Path, table: str) -> int:
    engine = sa.create_engine(f"sqlite:///{path}")
    try:
        with engine.connect() as conn:
            return conn.execute(sa.text(f'SELECT COUNT(*) FROM "{table}"')).scalar_one()
    finally:
        engine.dispose()


def insert_row(path: Path, table: str, **values: object) -> None:
    columns = ", ".join(values)
    params = ", ".join(f":{name}" for name in values)
    engine = sa.create_engine(f"sqlite:///{path}")
    try:
        with engine.begin() as conn:
            conn.execute(sa.text(f'INSERT INTO "{table}" ({columns}) VALUES ({params})'), values)
    finally:
        engine.dispose()
