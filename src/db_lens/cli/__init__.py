"""db-lens CLI package.

Re-exports ``main`` (the click group) so ``from db_lens.cli import main`` works.
"""

from db_lens.cli.main import main, open_engine, parse_assignments, parse_where

__all__ = ["main", "open_engine", "parse_assignments", "parse_where"]
