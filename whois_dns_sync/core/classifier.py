"""
Change Classifier - maps change metadata to an operation.

Pull request titles follow the "Registration/Update/Remove: <domain>" convention.
Older titles are matched by keyword for backward compatibility.
"""

import logging
import re
from typing import Optional

from ..exceptions import InputError
from .models import Operation

logger = logging.getLogger(__name__)

PREFIX_RULES = (
    (re.compile(r"^[Rr]egistration:"), Operation.ADD),
    (re.compile(r"^[Uu]pdate:"), Operation.UPDATE),
    (re.compile(r"^[Rr]emove:"), Operation.DELETE),
)

# Evaluated in order; the first match wins when several keywords appear.
KEYWORD_RULES = (
    (re.compile(r"registration|register", re.IGNORECASE), Operation.ADD),
    (re.compile(r"update", re.IGNORECASE), Operation.UPDATE),
    (re.compile(r"remove|delete", re.IGNORECASE), Operation.DELETE),
)


def parse_operation(value: str) -> Operation:
    """
    Parse an explicit operation value.

    Args:
        value: Operation name such as "add" or "Delete"

    Returns:
        The matching Operation

    Raises:
        InputError: If the value is not a known operation
    """
    try:
        return Operation(value.strip().lower())
    except ValueError:
        choices = ", ".join(op.value for op in Operation)
        raise InputError(f"Unknown operation '{value}' (expected one of: {choices})")


def classify_operation(title: Optional[str], explicit: Optional[str] = None) -> Operation:
    """
    Decide which operation a change represents.

    Args:
        title: Free-text title or description of the change
        explicit: Operator-supplied operation; wins unless empty or "auto"

    Returns:
        The classified Operation, AUTO when nothing matches
    """
    if explicit and explicit.strip():
        operation = parse_operation(explicit)
        if operation is not Operation.AUTO:
            logger.info(f"Using explicit operation: {operation.value}")
            return operation

    text = (title or "").strip()

    for pattern, operation in PREFIX_RULES:
        if pattern.match(text):
            logger.info(f"Classified '{text}' as {operation.value} by title prefix")
            return operation

    for pattern, operation in KEYWORD_RULES:
        if pattern.search(text):
            logger.info(f"Classified '{text}' as {operation.value} by keyword")
            return operation

    logger.info(f"No operation keyword in '{text}', falling back to auto")
    return Operation.AUTO
