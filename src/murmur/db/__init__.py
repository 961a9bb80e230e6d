# src/murmur/db/__init__.py
"""Database configuration and utilities."""

from .session import SessionLocal, get_db, run_in_session

__all__ = ["get_db", "SessionLocal", "run_in_session"]
