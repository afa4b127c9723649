# Business logic services
from .provider_factory import (
    ProviderConfigError,
    get_catalog_source,
    get_crm_sink,
    get_orchestrator,
    get_result_sink,
    get_run_guard,
)
from .result_sink import CompositeResultSink, EmailSummaryNotifier, SqlHistoryStore

__all__ = [
    "ProviderConfigError",
    "get_catalog_source",
    "get_crm_sink",
    "get_orchestrator",
    "get_result_sink",
    "get_run_guard",
    "CompositeResultSink",
    "EmailSummaryNotifier",
    "SqlHistoryStore",
]
