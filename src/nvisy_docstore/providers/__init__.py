"""Document store implementations.

Each provider module exports a `Provider` class alias for the main provider class,
along with its credentials and params types.

Available providers:
- memory: in-process dict store, used in tests and local tooling
- postgres: PostgreSQL JSONB table via asyncpg
"""

from nvisy_docstore.providers import memory, postgres

__all__ = [
    "memory",
    "postgres",
]
