"""
Column codecs for values the relational schema stores as text

Tags live in the domain as an ordered list of strings and in the database as
a JSON array. Both directions are kept here so the services never touch JSON.
"""

import json
from typing import List, Optional, Sequence

from tinytask.core.errors import ValidationError


def dump_tags(tags: Optional[Sequence[str]]) -> Optional[str]:
    """
    Encode tags for storage

    Args:
        tags: Ordered tags, or None when absent

    Returns:
        JSON array text, or None when tags is None
    """
    if tags is None:
        return None
    if isinstance(tags, str) or not all(isinstance(tag, str) for tag in tags):
        raise ValidationError("Tags must be a list of strings")
    return json.dumps(list(tags), ensure_ascii=False)


def load_tags(raw: Optional[str]) -> List[str]:
    """
    Decode stored tags

    NULL and empty text decode to an empty list. Anything that is not a JSON
    array of strings is rejected rather than silently dropped.

    Args:
        raw: Column value

    Returns:
        Ordered list of tags

    Raises:
        ValidationError: If the stored text is not a JSON array of strings
    """
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise ValidationError(f"Stored tags are not valid JSON: {raw!r}") from e
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        raise ValidationError(f"Stored tags are not a list of strings: {raw!r}")
    return value
