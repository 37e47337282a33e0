"""Validation helpers for object keys and container names."""

import re

from common.constants import MAX_CONTAINER_NAME_LENGTH, MAX_OBJECT_KEY_LENGTH, PATH_DELIMITER

CONTAINER_NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){2,}$")


def validate_object_key(key: str) -> str:
    """
    Check that a key can name a stored object.

    Args:
        key: Full flat key (e.g. "mydir1/mydir2/file.mp3")

    Returns:
        The key unchanged

    Raises:
        ValueError: If the key is empty, too long, names a directory or
            contains control characters or relative path components
    """
    if not key:
        raise ValueError("Object key must not be empty")
    if len(key) > MAX_OBJECT_KEY_LENGTH:
        raise ValueError(f"Object key exceeds {MAX_OBJECT_KEY_LENGTH} characters")
    if key.endswith(PATH_DELIMITER):
        raise ValueError(f"Object key '{key}' ends with '{PATH_DELIMITER}'")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in key):
        raise ValueError("Object key contains control characters")
    if "\\" in key:
        raise ValueError(f"Object key '{key}' contains a backslash")
    for component in key.split(PATH_DELIMITER):
        if component in (".", ".."):
            raise ValueError(f"Object key '{key}' contains a relative path component")
    return key


def validate_container_name(name: str) -> str:
    """
    Check a container name: 3-63 lowercase letters, digits and single hyphens.

    Raises:
        ValueError: If the name is not acceptable
    """
    if not name or len(name) > MAX_CONTAINER_NAME_LENGTH or not CONTAINER_NAME_PATTERN.match(name):
        raise ValueError(
            f"Invalid container name '{name}': use 3-{MAX_CONTAINER_NAME_LENGTH} lowercase "
            f"letters, digits or single hyphens"
        )
    return name
