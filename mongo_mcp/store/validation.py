"""Collection name checks applied before any caller-supplied name hits the store."""

from mongo_mcp.exceptions import ValidationError

RESERVED_DELIMITER = "$"
SYSTEM_PREFIX = "system."


def validate_collection_name(name: str) -> str:
    """Reject names that would reach internal or administrative namespaces.

    Args:
        name: Proposed collection name.

    Returns:
        The name, unchanged.

    Raises:
        ValidationError: If the name is empty, contains ``$`` or starts with
            ``system.``.
    """
    if not name or RESERVED_DELIMITER in name or name.startswith(SYSTEM_PREFIX):
        raise ValidationError(f"Invalid collection name: {name}", code="INVALID_COLLECTION")
    return name
