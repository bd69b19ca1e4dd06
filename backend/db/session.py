"""Database session management"""
import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from dotenv import load_dotenv

# Load environment variables for LOCAL development only
# In Lambda, env vars are set via CloudFormation - don't override them with .env files
# AWS_LAMBDA_FUNCTION_NAME is set by Lambda runtime
_is_lambda = os.getenv("AWS_LAMBDA_FUNCTION_NAME") is not None

if not _is_lambda:
    # Local development: load .env.local (takes precedence over .env)
    _backend_dir = Path(__file__).parent.parent
    env_local = _backend_dir / '.env.local'
    env_file = _backend_dir / '.env'

    if env_local.exists():
        load_dotenv(env_local, override=True)
    elif env_file.exists():
        load_dotenv(env_file, override=True)

# Engines are created on first use so that importing the API or the workers
# does not require a database (cron endpoints report misconfiguration instead)
_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}


def _get_engine(env_key: str) -> Engine:
    """
    Create (once) and return the engine for the URL stored in env_key.

    Raises:
        ValueError: If the environment variable is not set
    """
    if env_key not in _engines:
        database_url = os.getenv(env_key)
        if not database_url:
            raise ValueError(f"{env_key} not found in environment variables")

        _engines[env_key] = create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_recycle=3600,   # Recycle connections after 1 hour
        )
    return _engines[env_key]


def get_session_local(use_test_db: bool = False) -> sessionmaker:
    """
    Return the session factory for the production or test database.

    Workers invoked from local development pass use_test_db=True so they
    write to TEST_DATABASE_URL instead of DATABASE_URL.
    """
    env_key = "TEST_DATABASE_URL" if use_test_db else "DATABASE_URL"
    if env_key not in _session_factories:
        _session_factories[env_key] = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=_get_engine(env_key),
        )
    return _session_factories[env_key]


def SessionLocal(use_test_db: bool = False) -> Session:
    """Open a new session (caller closes it)."""
    return get_session_local(use_test_db)()
