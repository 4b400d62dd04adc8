"""GitHub Actions filter patterns (``on.push.tags``) compiled to regexes.

``*`` matches any run of characters except ``/``, ``**`` matches anything,
``?`` and ``+`` quantify the preceding character, ``[...]`` is a character
class. A leading ``!`` negates and is handled by the caller.
"""

from __future__ import annotations

import re

from tagrel.core.result import Err, Ok, Result

__all__ = ["compile_tag_pattern"]


def compile_tag_pattern(pattern: str) -> Result[re.Pattern[str], str]:
    if not pattern:
        return Err("empty pattern")

    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if i + 1 < n and pattern[i + 1] == "*":
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c in "?+":
            # Quantifies the preceding character, as in GitHub filters.
            if out:
                out.append(c)
            else:
                out.append(re.escape(c))
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                return Err(f"unterminated '[' at position {i}")
            body = pattern[i + 1 : end]
            if not body:
                return Err(f"empty character class at position {i}")
            escaped = body.replace("\\", "\\\\")
            out.append(f"[{escaped}]")
            i = end + 1
            continue
        else:
            out.append(re.escape(c))
        i += 1

    try:
        return Ok(re.compile("".join(out)))
    except re.error as e:
        return Err(str(e))
