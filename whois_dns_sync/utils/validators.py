"""
Validators - Input validation for registry records

This module provides validation for domain names, nameserver hostnames and
whole registry records so that malformed data never reaches the DNS provider.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

import dns.exception
import dns.name

from ..core.models import DomainRecord, Operation
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

LABEL_PATTERN = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$")


def validate_fqdn(fqdn: str) -> bool:
    """
    Validate Fully Qualified Domain Name (FQDN).

    Args:
        fqdn: The FQDN to validate, without a trailing dot

    Returns:
        True if valid, False otherwise
    """
    if not fqdn or not isinstance(fqdn, str):
        return False

    if fqdn.endswith("."):
        logger.warning(f"FQDN ends with dot: {fqdn}")
        return False

    labels = fqdn.split(".")

    if len(labels) < 2:
        logger.warning(f"FQDN must have at least 2 labels: {fqdn}")
        return False

    if any(label == "" for label in labels):
        logger.warning(f"FQDN contains empty labels: {fqdn}")
        return False

    for label in labels:
        if not _validate_label(label):
            logger.warning(f"Invalid label '{label}' in FQDN: {fqdn}")
            return False

    # dnspython enforces the wire-format limits (63 per label, 255 overall).
    try:
        dns.name.from_text(fqdn)
    except dns.exception.DNSException as e:
        logger.warning(f"FQDN rejected by DNS name rules: {fqdn} ({e})")
        return False

    return True


def _validate_label(label: str) -> bool:
    """
    Validate a single domain label.

    Labels can contain letters, digits and hyphens but cannot start or end
    with a hyphen.
    """
    if len(label) == 0 or len(label) > 63:
        return False

    return bool(LABEL_PATTERN.match(label))


def validate_nameserver(hostname: str) -> bool:
    """Validate a nameserver hostname; a trailing dot is allowed."""
    if not hostname or not isinstance(hostname, str):
        return False
    return validate_fqdn(hostname.strip().rstrip("."))


def sanitize_fqdn(fqdn: str) -> str:
    """
    Normalize an FQDN for comparison.

    Args:
        fqdn: The FQDN to sanitize

    Returns:
        Lowercased FQDN without surrounding whitespace or dots
    """
    if not fqdn:
        return fqdn

    return fqdn.strip().strip(".").lower()


def is_in_zone(fqdn: str, zone: str) -> bool:
    """Check whether an FQDN is a strict subdomain of the zone."""
    name = dns.name.from_text(sanitize_fqdn(fqdn))
    origin = dns.name.from_text(sanitize_fqdn(zone))
    return name != origin and name.is_subdomain(origin)


def parse_record_content(content: Union[bytes, str]) -> Dict[str, Any]:
    """
    Parse raw registry content into a JSON object.

    Raises:
        ValidationError: If the content is not a JSON object
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError("Record is not valid UTF-8", [str(e)])

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValidationError("Record is not valid JSON", [str(e)])

    if not isinstance(data, dict):
        raise ValidationError("Record must be a JSON object")

    return data


def validate_record_data(
    data: Dict[str, Any], operation: Operation, zone: Optional[str] = None
) -> List[str]:
    """
    Check a parsed record against the domain record schema.

    Args:
        data: Parsed registry record
        operation: Operation the record is used for
        zone: Parent zone the domain must belong to, if known

    Returns:
        List of validation errors, empty when the record is valid
    """
    errors = []

    domain = data.get("domain")
    if not isinstance(domain, str) or not domain.strip():
        errors.append("Missing required field 'domain'")
    elif not validate_fqdn(domain):
        errors.append(f"Invalid domain name '{domain}'")
    elif zone and not is_in_zone(domain, zone):
        errors.append(f"Domain '{domain}' is not within zone '{zone}'")

    # Deletion is keyed by domain name only.
    if operation is Operation.DELETE:
        return errors

    nameservers = data.get("nameservers")
    if not isinstance(nameservers, list) or not nameservers:
        errors.append("Field 'nameservers' must be a non-empty list")
        return errors

    for index, nameserver in enumerate(nameservers):
        if not isinstance(nameserver, str):
            errors.append(f"Nameserver at position {index} is not a string")
        elif not validate_nameserver(nameserver):
            errors.append(f"Invalid nameserver hostname '{nameserver}'")

    return errors


def validate_domain_record(
    content: Union[bytes, str], operation: Operation, zone: Optional[str] = None
) -> DomainRecord:
    """
    Parse and validate registry content.

    Args:
        content: Raw JSON content of the registry file
        operation: Operation the record is used for
        zone: Parent zone the domain must belong to, if known

    Returns:
        The validated DomainRecord

    Raises:
        ValidationError: If the content violates the schema
    """
    data = parse_record_content(content)
    errors = validate_record_data(data, operation, zone)
    if errors:
        for error in errors:
            logger.error(f"Validation error: {error}")
        raise ValidationError("Invalid domain record", errors)

    data = dict(data)
    data["domain"] = sanitize_fqdn(data["domain"])
    if operation is not Operation.DELETE:
        data["nameservers"] = [ns.strip() for ns in data["nameservers"]]
    elif not isinstance(data.get("nameservers"), list):
        # Malformed nameservers are irrelevant for deletion.
        data.pop("nameservers", None)
    else:
        data["nameservers"] = [ns for ns in data["nameservers"] if isinstance(ns, str)]

    record = DomainRecord.from_dict(data)
    logger.info(f"Validated record for {record.domain} ({operation.value})")
    return record
