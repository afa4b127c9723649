# API endpoint routers
from . import health, sync, webhooks

__all__ = ["health", "sync", "webhooks"]
