"""Glob-style symbol patterns.

``*`` matches any run of characters and ``?`` a single one; everything else
is literal. Patterns are anchored at both ends. Compiled patterns are cached
because the same handful of patterns is reused by many contracts in a run.

Scope fragments (``App/Order#save()``) match whole symbol segments only.
"""

from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$", re.DOTALL)


def glob_matches(pattern: str, text: str | None) -> bool:
    return text is not None and compile_glob(pattern).match(text) is not None


def contains(substring: str, text: str | None) -> bool:
    return text is not None and substring in text


@lru_cache(maxsize=512)
def compile_scope(fragment: str) -> re.Pattern[str]:
    # A whole ``Class#method()`` segment: ``Order#`` must not match ``SpecialOrder#``.
    return re.compile(rf"(?:^|[ /]){re.escape(fragment)}(?=\.|$)")


def in_scope(fragment: str, text: str | None) -> bool:
    """True when ``text`` is a symbol inside the ``Class#method()`` named by ``fragment``."""
    return text is not None and compile_scope(fragment).search(text) is not None
