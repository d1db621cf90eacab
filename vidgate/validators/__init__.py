"""Validators for source locators and format identifiers."""

from vidgate.validators.url_validator import (
    host_allowed,
    is_private_ip,
    validate_format_id,
    validate_source_url,
)

__all__ = ["host_allowed", "is_private_ip", "validate_format_id", "validate_source_url"]
