"""Column types shared by the account tables"""
import uuid

from sqlalchemy import String, TypeDecorator


def new_user_id() -> str:
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """User ids as 36-char UUID strings, so sqlite and postgres store the same value"""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else str(value)
