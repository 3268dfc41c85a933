from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context

from vidhub.core.base import Base
from vidhub.core.config import Settings

from vidhub.models.comment import Comment  # noqa: F401
from vidhub.models.community_post import CommunityPost  # noqa: F401
from vidhub.models.follow import Follow  # noqa: F401
from vidhub.models.like import Like  # noqa: F401
from vidhub.models.playlist import Playlist, PlaylistVideo  # noqa: F401
from vidhub.models.user import User  # noqa: F401
from vidhub.models.video import Video  # noqa: F401
from vidhub.models.watch_history import WatchHistory  # noqa: F401

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

migrations_url = Settings().database_url

# ConfigParser treats "%" as interpolation markers; escape them for the .ini writer.
config.set_main_option("sqlalchemy.url", migrations_url.replace("%", "%%"))

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Configures the context with just a URL, so no DBAPI is needed.
    Calls to context.execute() emit the given string to the script output.
    """
    context.configure(
        url=migrations_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = create_engine(
        migrations_url,
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection, target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
