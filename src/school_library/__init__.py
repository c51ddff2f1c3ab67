"""
School Library package.

Tracks books, students and borrow/return transactions for a school library
and exposes dashboard summaries.

Key Components:
- models: Pydantic models for validation and serialization
- database: SQLAlchemy schema, session management and repositories
  (entity store, availability ledger, circulation engine, reports)
- config: Configuration management with pydantic-settings
- resources: MCP resources (read-only endpoints)
- tools: MCP tools (operations with side effects)
"""

__version__ = "0.1.0"

from . import database

__all__ = [
    "__version__",
    "database",
]
