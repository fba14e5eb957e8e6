"""
Utility functions for the CMS anonymizer.

This module provides text normalization, argument parsing and hashing helpers
used across the application.
"""

import hashlib
import unicodedata
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

import regex


def calculate_hash(text: str, algorithm: str = "sha256", salt: str = "") -> str:
    """
    Calculate hash of text using specified algorithm.

    Args:
        text: Text to hash
        algorithm: Hash algorithm to use (md5, sha1, sha256)
        salt: Salt to add to hash

    Returns:
        Hexadecimal hash string
    """
    salted_text = f"{salt}{text}".encode('utf-8')

    if algorithm == "md5":
        return hashlib.md5(salted_text).hexdigest()
    elif algorithm == "sha1":
        return hashlib.sha1(salted_text).hexdigest()
    elif algorithm == "sha256":
        return hashlib.sha256(salted_text).hexdigest()
    else:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")


def get_timestamp() -> str:
    """
    Get current timestamp in ISO format.

    Returns:
        ISO format timestamp string
    """
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def is_empty(value: Any) -> bool:
    """Return True for None, empty strings/containers, 0 and "0"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in ("", "0")
    return not value


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.strip().isdigit()


def parse_list(value: Union[str, int, Iterable, None]) -> List[str]:
    """
    Split a comma (or whitespace) separated argument into a list of tokens.

    Sequences are accepted as well so that in-process callers can pass lists
    of IDs directly.

    Args:
        value: Raw argument value

    Returns:
        List of non-empty, stripped tokens
    """
    if value is None or value is False:
        return []
    if isinstance(value, int):
        return [str(value)]
    if isinstance(value, str):
        items = regex.split(r'[\s,]+', value)
    else:
        items = [str(item) for item in value]
    return [item.strip() for item in items if item is not None and str(item).strip()]


def string_to_mapping(
    value: Optional[str],
    item_delimiter: str = ',',
    assoc_delimiter: str = '::'
) -> Dict[str, Optional[str]]:
    """
    Parse ``key::value,key2,key3::value3`` into a dictionary.

    Keys without a value map to None.

    Args:
        value: Raw argument value
        item_delimiter: Separator between items
        assoc_delimiter: Separator between a key and its value

    Returns:
        Ordered dictionary of keys to values
    """
    if not value:
        return {}

    mapping = {}
    for item in value.split(item_delimiter):
        item = item.strip()
        if not item:
            continue
        key, _, item_value = item.partition(assoc_delimiter)
        mapping[key.strip()] = item_value.strip() or None
    return mapping


def strip_accents(text: str) -> str:
    """Remove combining marks, e.g. "Éloïse" -> "Eloise"."""
    return regex.sub(r'\p{M}', '', unicodedata.normalize('NFKD', text))


def slugify(text: str) -> str:
    """
    Build a URL-friendly slug from text.

    Args:
        text: Text to slugify

    Returns:
        Lowercase ASCII slug with dashes, e.g. "Doe.John" -> "doe-john"
    """
    text = strip_accents(text).lower()
    text = regex.sub(r'[^a-z0-9_\-]+', '-', text)
    return regex.sub(r'-{2,}', '-', text).strip('-')


def sanitize_login(text: str) -> str:
    """
    Reduce a login to the characters a login may safely contain.

    Only ASCII letters, digits, space, ``_``, ``.``, ``-`` and ``@`` survive;
    consecutive whitespace collapses to a single space.
    """
    text = strip_accents(text)
    text = regex.sub(r'[^A-Za-z0-9 _.\-@]', '', text)
    return regex.sub(r'\s+', ' ', text).strip()


def strimwidth(text: str, width: int) -> str:
    """Trim text to ``width`` characters."""
    return text[:width]


def prompt_confirmation(question: str) -> bool:
    """
    Ask the operator a yes/no question on the terminal.

    Args:
        question: Question to display

    Returns:
        True if the answer starts with "y"
    """
    answer = input(f"{question} [y/n] ")
    return answer.strip().lower().startswith('y')
