# Database configuration and session management
from .base import Base
from .session import create_session_maker, get_async_engine, get_session_maker

__all__ = [
    "Base",
    "create_session_maker",
    "get_async_engine",
    "get_session_maker",
]
