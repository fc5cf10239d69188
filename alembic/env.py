"""
Alembic environment: runs migrations against settings.DATABASE_URL, the same
connection string the application uses.
"""
from alembic import context
from sqlalchemy import create_engine

from masterlist.config import settings
from masterlist.database import Base

# Import every ORM model so that Base.metadata knows about all tables.
import masterlist.models  # noqa: F401

connectable = create_engine(settings.DATABASE_URL)


def run_migrations_online():
    with connectable.connect() as conn:
        context.configure(
            connection=conn,
            target_metadata=Base.metadata,
            render_as_batch=conn.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


def run_migrations_offline():
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=Base.metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
