"""Database module."""

from simple_bundler.database.engine import get_engine, get_session, init_db
from simple_bundler.database.repository import BundleRepository

__all__ = ["get_engine", "get_session", "init_db", "BundleRepository"]
