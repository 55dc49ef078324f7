from typing import Any, Optional


def norm(s: Optional[str]) -> Optional[str]:
    """Strip whitespace; empty string becomes None."""
    if s is None:
        return None
    s2 = s.strip()
    return s2 or None


def is_blank(v: Any) -> bool:
    """True for None, empty/whitespace strings, and empty containers/bytes."""
    if v is None:
        return True
    if isinstance(v, str):
        return not v.strip()
    if isinstance(v, (bytes, list, tuple, dict)):
        return len(v) == 0
    return False
