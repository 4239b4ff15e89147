from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy import text
from sqlalchemy.pool import QueuePool
from sqlalchemy.orm import scoped_session, sessionmaker

from rangebook.context.core import StoppableService


from typing import Any


SERIALIZABLE = 'SERIALIZABLE'


class SessionProvider(StoppableService):
    """Global session utility. It provides a SERIALIZABLE session to
    rangebook, one per thread.

    The overlap rules of the booker are checked by the application first and
    then enforced by exclusion constraints. Both rely on serializable
    transactions, so if you override this provider, keep the isolation level.

    """

    def __init__(
        self,
        dsn: str,
        engine_config: dict[str, Any] | None = None,
        session_config: dict[str, Any] | None = None
    ):
        self.assert_valid_postgres_version(dsn)
        self.dsn = dsn

        self.engine = create_engine(
            dsn, poolclass=QueuePool, pool_size=5, max_overflow=5,
            isolation_level=SERIALIZABLE,
            **(engine_config or {})
        )

        self.session = scoped_session(sessionmaker(
            bind=self.engine, **(session_config or {})
        ))

    def stop_service(self) -> None:
        """ Called by the context when the session provider is being
        discarded (only in testing).

        This makes sure that replacing the session provider on the context
        doesn't leave behind any idle connections.

        """

        self.session.remove()
        self.engine.dispose()

    def get_postgres_version(self, dsn: str) -> tuple[str, int]:
        """ Returns the postgres version as a tuple (string, integer).

        Uses it's own connection to be independent from any session.

        """
        assert 'postgres' in dsn, 'Not a postgres database'

        query = text("""
            SELECT current_setting('server_version'),
                   current_setting('server_version_num')
        """)

        engine = create_engine(dsn)

        try:
            with engine.connect() as connection:
                result = connection.execute(query).first()
            assert result is not None
            version, number = result
            return version, int(number)
        finally:
            engine.dispose()

    def assert_valid_postgres_version(self, dsn: str) -> str:
        v, n = self.get_postgres_version(dsn)

        # btree_gist on uuid columns is needed for the exclusion constraints
        if n < 100000:
            raise RuntimeError(f'PostgreSQL 10+ is required, got {v}')

        return dsn
