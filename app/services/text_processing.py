"""
Text processing for lookup: cleaning, tokenizing, and fuzzy comparison.

Questions, names, and company names arrive with inconsistent spacing, case,
and punctuation. Everything that compares two strings goes through these
helpers so the index and the resolver agree on what a token is.
"""

import re
import unicodedata
from datetime import datetime, timezone

_TOKEN_RE = re.compile(r"[a-z0-9@._\-]+")
_WHITESPACE_RE = re.compile(r"\s+")

# Applied in order; each rewrite is a fixed point of itself so the whole is idempotent
_COMPANY_REWRITES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"&"), " and "),
    (re.compile(r","), " "),
    (re.compile(r"\bpvt\.?\s*ltd\b\.?"), "pvt ltd"),
    (re.compile(r"\bprivate\s+limited\b"), "pvt ltd"),
    (re.compile(r"\bltd\b\.?"), "ltd"),
    (re.compile(r"\binc\b\.?"), "inc"),
    (re.compile(r"\bco\b\.?"), "company"),
)

_TIMESTAMP_FORMATS = (
    "%d-%b-%Y",
    "%d-%b-%Y %H:%M:%S",
    "%d/%m/%Y",
    "%d/%m/%Y %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
)


def clean_text(text: str) -> str:
    """
    Normalize a free-text question: NFKC, zero-width characters removed,
    whitespace runs collapsed, outer whitespace stripped.
    """
    if not text or not text.strip():
        return ""
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("\u200b", " ").replace("\ufeff", "")
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str, min_length: int = 3) -> list[str]:
    """
    Lowercase word tokens. Email and id punctuation (@ . _ -) stays inside a
    token but is trimmed from its ends. Tokens shorter than min_length are dropped.
    """
    if not text:
        return []
    tokens = (t.strip("._-") for t in _TOKEN_RE.findall(text.lower()))
    return [t for t in tokens if len(t) >= min_length]


def name_tokens(name: str) -> list[str]:
    """Tokens of a person name; short parts are kept."""
    return tokenize(name, min_length=1)


def normalize_key(value: str | None) -> str:
    """Lookup key for identifiers and exact-match maps: case-folded, trimmed."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip().lower()


def normalize_company(text: str) -> str:
    """
    Canonical company name: legal suffix variants collapsed, '&' spelled 'and',
    a standalone 'co' expanded to 'company'. Idempotent.
    """
    if not text:
        return ""
    out = text.lower()
    for pattern, replacement in _COMPANY_REWRITES:
        out = pattern.sub(replacement, out)
    return _WHITESPACE_RE.sub(" ", out).strip()


def levenshtein(a: str, b: str) -> int:
    """Single-source edit distance (insert, delete, substitute all cost 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """1 - distance / max length, case-insensitive. Two empty strings are identical."""
    a, b = (a or "").lower(), (b or "").lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse the date formats seen in login and profile records. Returns naive UTC or None."""
    if not value or not str(value).strip():
        return None
    raw = str(value).strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def newest_first_key(value: str | None) -> tuple[bool, datetime]:
    """Sort key (use with reverse=True): parseable dates newest first, unparseable last."""
    parsed = parse_timestamp(value)
    return (parsed is not None, parsed or datetime.min)
