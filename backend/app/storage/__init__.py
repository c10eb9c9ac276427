from storage.base import Storage
from storage.memory import InMemoryStorage


def create_storage(backend: str, database_url: str = "", echo: bool = False) -> Storage:
    """Build the configured backend ("memory" or "postgres")."""
    if backend == "memory":
        return InMemoryStorage()
    if backend == "postgres":
        from storage.postgres import PostgresStorage
        return PostgresStorage.from_url(database_url, echo=echo)
    raise ValueError(f"Unknown storage backend: {backend!r}")


__all__ = ["Storage", "InMemoryStorage", "create_storage"]
