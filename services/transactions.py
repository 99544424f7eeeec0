import logging
import time

from flask import current_app, has_app_context
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, OperationalError

from services.errors import TransactionConflict

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BACKOFF_SECONDS = 0.05


def _setting(name, default):
    if has_app_context():
        return current_app.config.get(name, default)
    return default


def run_in_transaction(session, work, max_attempts=None):
    """
    Run ``work(session)`` as one unit of work and commit it.

    Serialization failures, SQLite lock timeouts and unique-constraint races
    roll the unit back and run it again from scratch, so ``work`` must do all
    of its reads itself and never rely on objects loaded by a previous attempt.
    Any other exception rolls back and propagates unchanged.
    """
    attempts = max_attempts or _setting("TX_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)
    backoff = _setting("TX_RETRY_BACKOFF_SECONDS", DEFAULT_BACKOFF_SECONDS)

    for attempt in range(1, attempts + 1):
        try:
            result = work(session)
            session.commit()
            return result
        except (OperationalError, IntegrityError) as exc:
            session.rollback()
            if attempt == attempts:
                logger.error("tx.gave_up attempts=%s error=%s", attempt, exc.__class__.__name__)
                raise TransactionConflict(str(exc.orig if exc.orig is not None else exc)) from exc
            logger.info("tx.retry attempt=%s error=%s", attempt, exc.__class__.__name__)
            time.sleep(backoff * attempt)
        except Exception:
            session.rollback()
            raise


def use_serializable_sqlite(engine):
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, which lets two units both read
    a slot as free before either writes. BEGIN IMMEDIATE makes the second unit
    wait (or fail with "database is locked", which run_in_transaction retries).
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def engine_options_for(database_uri, options=None):
    """
    Engine options with a serializable default for server databases.

    The facility row lock only exists when the facility row does, so the
    occupancy read needs SERIALIZABLE to stay race free without it. An explicit
    ``isolation_level`` (``DB_ISOLATION_LEVEL``) wins. SQLite is left alone;
    use_serializable_sqlite covers it.
    """
    options = dict(options or {})
    if make_url(database_uri).get_backend_name() != "sqlite":
        options.setdefault("isolation_level", "SERIALIZABLE")
    return options
