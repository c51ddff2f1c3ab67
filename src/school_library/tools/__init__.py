"""
MCP tools for the School Library.

Tools are the operations with side effects:
- Catalog: create/update/delete books and students
- Circulation: borrow and return books
"""

from typing import Any

from ..database import DatabaseManager
from .catalog import catalog_tools
from .circulation import circulation_tools


def all_tools(db: DatabaseManager, loan_period_days: int = 14) -> list[dict[str, Any]]:
    return catalog_tools(db) + circulation_tools(db, loan_period_days)


__all__ = ["all_tools", "catalog_tools", "circulation_tools"]
