"""
Utility functions and helpers.

This package contains validation helpers for domain names and registry records.
"""

from .validators import sanitize_fqdn, validate_domain_record, validate_fqdn

__all__ = ["sanitize_fqdn", "validate_domain_record", "validate_fqdn"]
