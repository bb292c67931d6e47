"""
Best-effort URL token scanner for HTML-bearing text fields.

This is not an HTML parser. A URL token:
- starts at "http://" or "https://" (case-insensitive)
- ends right before the first whitespace, quote ("), apostrophe ('),
  angle bracket (< or >) or closing parenthesis

Tokens are deduplicated by exact string; order carries no meaning.
"""

import re
from typing import Dict, Set

URL_TOKEN_RE = re.compile(r"""https?://[^"'<>\s)]+""", re.IGNORECASE)


def extract_urls(text: object) -> Set[str]:
    """Return the distinct URL tokens found in text (empty set for non-text input)."""
    if not text or not isinstance(text, str):
        return set()
    return set(URL_TOKEN_RE.findall(text))


def replace_urls(text: str, replacements: Dict[str, str]) -> str:
    """
    Replace whole URL tokens found in replacements; everything else is kept verbatim.

    Matching by token (not substring) means a URL that is a prefix of a
    longer URL never rewrites part of the longer one.
    """
    if not replacements:
        return text
    return URL_TOKEN_RE.sub(lambda m: replacements.get(m.group(0), m.group(0)), text)
