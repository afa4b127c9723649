"""
Tests for the Error Classifier.
"""

import httpx

from catalog_sync.integrations.hubspot.client import HubSpotAPIError
from catalog_sync.services.catalog_sync import ErrorCategory, ErrorClassifier


def hubspot_error(status_code: int, body) -> HubSpotAPIError:
    return HubSpotAPIError(f"HubSpot API error: {status_code}", status_code=status_code, body=body)


class TestErrorClassifier:
    """Tests for ErrorClassifier.classify."""

    def test_missing_properties(self):
        """Field names are collected from every PROPERTY_DOESNT_EXIST entry."""
        body = {
            "status": "error",
            "message": "Property values were not valid",
            "errors": [
                {
                    "code": "PROPERTY_DOESNT_EXIST",
                    "message": 'Property "custom__metal" does not exist',
                    "context": {"propertyName": ["custom__metal"]},
                },
                {
                    "code": "PROPERTY_DOESNT_EXIST",
                    "context": {"propertyName": ["diamond__carat"]},
                },
            ],
        }

        result = ErrorClassifier().classify(hubspot_error(400, body))

        assert result.category == ErrorCategory.MISSING_FIELDS
        assert result.missing_fields == ["custom__metal", "diamond__carat"]
        assert result.message.startswith("Missing Properties: custom__metal, diamond__carat.")
        assert "Property values were not valid" in result.message
        assert not result.retryable

    def test_duplicate_sku(self):
        """Unique value conflicts are reported as a SKU already in use."""
        body = {
            "status": "error",
            "message": "Product with hs_sku ABC123 already has that value.",
            "category": "VALIDATION_ERROR",
        }

        result = ErrorClassifier().classify(hubspot_error(400, body))

        assert result.category == ErrorCategory.DUPLICATE_KEY
        assert result.message.startswith("SKU already in use.")
        assert "already has that value" in result.message
        assert not result.retryable

    def test_invalid_number_with_field_name(self):
        body = {
            "message": "Property values were not valid",
            "errors": [
                {
                    "code": "INVALID_LONG",
                    "message": "null was not a valid number.",
                    "context": {"propertyName": ["price"]},
                }
            ],
        }

        result = ErrorClassifier().classify(hubspot_error(400, body))

        assert result.category == ErrorCategory.INVALID_NUMBER
        assert result.field_name == "price"
        assert "null was not a valid number for price." in result.message

    def test_invalid_number_from_plain_string(self):
        result = ErrorClassifier().classify("null was not a valid number")

        assert result.category == ErrorCategory.INVALID_NUMBER
        assert result.field_name is None
        assert "null was not a valid number." in result.message

    def test_rate_limit_is_transient(self):
        result = ErrorClassifier().classify(hubspot_error(429, {"message": "Too many requests"}))

        assert result.category == ErrorCategory.TRANSIENT
        assert result.retryable
        assert "Too many requests" in result.message

    def test_network_error_is_transient(self):
        result = ErrorClassifier().classify(httpx.ConnectError("connection refused"))

        assert result.category == ErrorCategory.TRANSIENT
        assert "connection refused" in result.message

    def test_unknown_error_keeps_raw_message(self):
        result = ErrorClassifier().classify(ValueError("something odd"))

        assert result.category == ErrorCategory.UNKNOWN
        assert result.message == "something odd"

    def test_never_raises(self):
        """An error whose body cannot be read falls back to its string form."""

        class Unprintable(Exception):
            @property
            def body(self):
                raise RuntimeError("boom")

        result = ErrorClassifier().classify(Unprintable("raw"))

        assert result.category == ErrorCategory.UNKNOWN
        assert result.message == "raw"
