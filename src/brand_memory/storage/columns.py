"""Column types shared by the SQLAlchemy backends."""

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from brand_memory.clock import to_naive_utc


class NaiveUTCDateTime(TypeDecorator):
    """
    DateTime column that never stores an offset.

    Aware values are converted to naive UTC on the way in, including values
    bound in filters, so stored rows and query parameters always compare in
    the same form. Backends like SQLite drop offsets silently otherwise.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_naive_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return to_naive_utc(value)
