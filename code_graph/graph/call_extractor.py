"""
Lexical call-site extraction.

An identifier followed by ``(`` is treated as a call. Comments, strings and
scopes are not understood, so the result is an approximation of the callees
of a snippet, not ground truth.
"""
import re
from typing import List

CALL_PATTERN = re.compile(r"([a-zA-Z_$][a-zA-Z0-9_$]*)\s*\(")

CALL_STOPLIST = frozenset({"if", "for", "while", "switch", "catch", "function"})


def extract_function_calls(code_snippet: str) -> List[str]:
    """Return candidate callee names in first-seen order, without duplicates."""
    if not code_snippet:
        return []

    calls = []
    seen = set()
    for match in CALL_PATTERN.finditer(code_snippet):
        name = match.group(1)
        if name in CALL_STOPLIST or name in seen:
            continue
        seen.add(name)
        calls.append(name)
    return calls
