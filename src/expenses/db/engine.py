"""SQLModel engine construction for the local record store."""
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine


def create_db_engine(database_url: str) -> Engine:
    """Create an engine, its tables and apply pending migrations."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # engine is shared with the executor threads
    engine = create_engine(database_url, connect_args=connect_args)

    # Import all models so metadata is populated before create_all
    from expenses.models.expense import Expense  # noqa
    from expenses.models.preference import Preference  # noqa
    from expenses.models.sync import PendingDeletion  # noqa
    SQLModel.metadata.create_all(engine)
    from expenses.db.migrations import run_migrations
    run_migrations(engine)
    return engine
