# team_resolver/utils/misc_utils.py
import hashlib
import re


def generate_cache_key(prefix: str, *args: str) -> str:
    """Generates a consistent cache key from a prefix and one or more strings.

    Parts are lowercased and joined with ``:``; whitespace runs collapse to a
    single space. Long keys are replaced by a short hash so the key size stays
    bounded whatever the input.
    """
    parts = [re.sub(r"\s+", " ", str(arg).lower().strip()) for arg in args]
    combined = ":".join(parts)
    if len(combined) > 100:
        combined = hashlib.sha1(combined.encode()).hexdigest()[:16]
    return f"{prefix}:{combined}"
