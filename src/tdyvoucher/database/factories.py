"""Rate table factory functions."""

import os
from pathlib import Path
from typing import Optional

from tdyvoucher.database.sqlalchemy_db import SQLAlchemyRateTable


def create_sqlite_rate_table(database_path: Optional[str] = None) -> SQLAlchemyRateTable:
    """Create a SQLite-backed rate table.

    Args:
        database_path: Path to SQLite database file. If None, checks TDYVOUCHER_DB_PATH
            environment variable, then defaults to ~/.tdyvoucher/rates.db

    Returns:
        SQLAlchemyRateTable instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("TDYVOUCHER_DB_PATH")

    if database_path is None:
        home = Path.home()
        db_dir = home / ".tdyvoucher"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "rates.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyRateTable(database_url)
