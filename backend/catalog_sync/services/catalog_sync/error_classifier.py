"""
Error Classifier for CRM Sink Errors.

Turns whatever the CRM sink raised into one structured, human-readable
classification that the orchestrator records as the failure reason.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

import httpx

logger = logging.getLogger(__name__)

MISSING_PROPERTY_CODE = "PROPERTY_DOESNT_EXIST"
DUPLICATE_VALUE_MARKER = "already has that value"
INVALID_NUMBER_MARKER = "null was not a valid number"

TRANSIENT_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


class ErrorCategory(str, Enum):
    """Why the sink rejected a record."""
    MISSING_FIELDS = "missing_fields"
    DUPLICATE_KEY = "duplicate_key"
    INVALID_NUMBER = "invalid_number"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedError:
    """Classification of a single sink error."""
    message: str
    category: ErrorCategory = ErrorCategory.UNKNOWN
    missing_fields: List[str] = field(default_factory=list)
    field_name: Optional[str] = None
    raw_message: str = ""

    @property
    def retryable(self) -> bool:
        """Only transport-level failures are worth another attempt."""
        return self.category == ErrorCategory.TRANSIENT


class ErrorClassifier:
    """
    Classifies CRM sink errors.

    Features:
    - Missing destination properties (field names extracted)
    - Duplicate SKU / unique value conflicts
    - Null sent where a number was expected (field name when available)
    - Transient network / rate-limit errors

    classify() never raises: a classification failure falls back to the
    error's string form.
    """

    def classify(self, error: Any) -> ClassifiedError:
        """
        Classify a raw sink error.

        Args:
            error: Exception raised by the sink, a structured error body
                   (dict) or a plain string

        Returns:
            ClassifiedError whose message contains the raw message
        """
        try:
            return self._classify(error)
        except Exception as e:
            logger.warning(f"⚠️ Could not classify sink error ({e}); using raw message")
            return ClassifiedError(message=str(error), raw_message=str(error))

    def _classify(self, error: Any) -> ClassifiedError:
        detail = self._error_detail(error)
        raw_message = detail if isinstance(detail, str) else json.dumps(detail, default=str)

        missing_fields = self._missing_properties(detail)
        if missing_fields:
            return ClassifiedError(
                message=f"Missing Properties: {', '.join(missing_fields)}. {raw_message}",
                category=ErrorCategory.MISSING_FIELDS,
                missing_fields=missing_fields,
                raw_message=raw_message,
            )

        if DUPLICATE_VALUE_MARKER in raw_message:
            return ClassifiedError(
                message=f"SKU already in use. {raw_message}",
                category=ErrorCategory.DUPLICATE_KEY,
                raw_message=raw_message,
            )

        if INVALID_NUMBER_MARKER in raw_message:
            field_name = self._first_property_name(detail)
            suffix = f" for {field_name}" if field_name else ""
            return ClassifiedError(
                message=(
                    f"Property values were not valid: null was not a valid number{suffix}. "
                    f"{raw_message}"
                ),
                category=ErrorCategory.INVALID_NUMBER,
                field_name=field_name,
                raw_message=raw_message,
            )

        if self._is_transient(error):
            return ClassifiedError(
                message=f"Temporary CRM error, try again later. {raw_message}",
                category=ErrorCategory.TRANSIENT,
                raw_message=raw_message,
            )

        return ClassifiedError(message=raw_message, raw_message=raw_message)

    @staticmethod
    def _error_detail(error: Any) -> Any:
        """Structured body when the error carries one, else its text."""
        if isinstance(error, (dict, str)):
            return error
        body = getattr(error, "body", None)
        if body:
            return body
        return str(error)

    @staticmethod
    def _error_entries(detail: Any) -> List[dict]:
        if not isinstance(detail, dict):
            return []
        entries = detail.get("errors")
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def _missing_properties(self, detail: Any) -> List[str]:
        missing = []
        for entry in self._error_entries(detail):
            if entry.get("code") != MISSING_PROPERTY_CODE:
                continue
            names = (entry.get("context") or {}).get("propertyName")
            if isinstance(names, list):
                missing.extend(str(name) for name in names)
        return missing

    def _first_property_name(self, detail: Any) -> Optional[str]:
        entries = self._error_entries(detail)
        if not entries:
            return None
        names = (entries[0].get("context") or {}).get("propertyName")
        if isinstance(names, list) and names:
            return str(names[0])
        return None

    @staticmethod
    def _is_transient(error: Any) -> bool:
        if isinstance(error, httpx.TransportError):
            return True
        if getattr(error, "transient", False) is True:
            return True
        status_code = getattr(error, "status_code", None)
        return status_code in TRANSIENT_STATUS_CODES
