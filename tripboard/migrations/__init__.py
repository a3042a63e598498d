"""Plain-SQL schema migrations."""

from .runner import VERSIONS_DIR, Migration, MigrationRunner, discover

__all__ = ["Migration", "MigrationRunner", "VERSIONS_DIR", "discover"]
