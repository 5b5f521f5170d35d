"""
Change-detection fingerprint for profile embeddings.

The hash must stay stable across deploys: a different value for unchanged
profile content forces every stored embedding to be regenerated. It is a
32-bit rolling hash, not a security primitive.
"""

import json
from collections.abc import Mapping
from typing import Any

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Only these fields change what a profile "means"; name, avatar and location do not.
SEMANTIC_FIELDS = (
    "skills",
    "industry",
    "designation",
    "company",
    "experience_years",
    "interests",
    "department",
    "is_mentor",
    "is_hiring",
)


def _get(profile: Any, name: str) -> Any:
    if isinstance(profile, Mapping):
        return profile.get(name)
    return getattr(profile, name, None)


def canonical_profile(profile: Any) -> dict[str, Any]:
    """Semantic subset with nulls replaced by empty values, in fixed key order."""
    experience = _get(profile, "experience_years") or 0
    return {
        "skills": list(_get(profile, "skills") or []),
        "industry": _get(profile, "industry") or "",
        "designation": _get(profile, "designation") or "",
        "company": _get(profile, "company") or "",
        "experience_years": int(experience),
        "interests": list(_get(profile, "interests") or []),
        "department": _get(profile, "department") or "",
        "is_mentor": bool(_get(profile, "is_mentor") or False),
        "is_hiring": bool(_get(profile, "is_hiring") or False),
    }


def serialize_canonical(obj: dict[str, Any]) -> str:
    # Compact separators and raw non-ASCII: byte-for-byte what JSON.stringify emits.
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def rolling_hash(text: str) -> int:
    """h = h * 31 + unit over UTF-16 code units, wrapped to a signed 32-bit int."""
    h = 0
    data = text.encode("utf-16-le", errors="surrogatepass")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    n = abs(value)
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return sign + "".join(reversed(digits))


def profile_fingerprint(profile: Any) -> str:
    """
    Stable short hash over the semantic fields of a profile.

    List order matters: ["a", "b"] and ["b", "a"] hash differently.
    """
    return to_base36(rolling_hash(serialize_canonical(canonical_profile(profile))))
