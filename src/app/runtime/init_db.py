"""Database initialization script."""

from src.app.core.services.database.db_session import DbSessionService


def init_db() -> None:
    """Create all registry tables in the configured database."""
    DbSessionService().create_all()


if __name__ == "__main__":
    init_db()
