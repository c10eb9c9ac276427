"""Column types for list-valued attributes.

PostgreSQL stores them as native arrays. Any other dialect gets a JSON
text encoding. Callers only ever see Python lists.
"""
import json

from sqlalchemy import Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.types import TypeDecorator


class _ListType(TypeDecorator):
    impl = Text
    cache_ok = True
    item_type = None

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(self.item_type()))
        return dialect.type_descriptor(Text())

    def coerce_item(self, value):
        raise NotImplementedError

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        items = [self.coerce_item(v) for v in value]
        if dialect.name == "postgresql":
            return items
        return json.dumps(items)

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        if isinstance(value, str):
            value = json.loads(value) if value else []
        return [self.coerce_item(v) for v in value]


class IdList(_ListType):
    """Ordered list of integer ids (``INTEGER[]`` on PostgreSQL)."""
    item_type = Integer

    def coerce_item(self, value):
        return int(value)


class StringList(_ListType):
    """Ordered list of strings (``VARCHAR[]`` on PostgreSQL)."""
    item_type = String

    def coerce_item(self, value):
        return str(value)
