from .catalog import CatalogSource, CRMSink
from .results import ResultSink

__all__ = ["CatalogSource", "CRMSink", "ResultSink"]
