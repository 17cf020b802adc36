"""Compile the restricted glob dialect used by file-type catalogs."""

from __future__ import annotations

import re
from functools import lru_cache


def glob_to_regex(pattern: str) -> str:
    """Translate a glob into an anchored regular expression source."""
    output: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == ".":
            output.append(r"\.")
        elif char == "?":
            output.append(".")
        elif char == "*":
            output.append(".*")
        elif char == "[":
            # A leading "]" belongs to the class.
            search_from = index + 2 if pattern.startswith("]", index + 1) else index + 1
            close = pattern.find("]", search_from)
            if close == -1:
                remainder = pattern[index + 1 :]
                if remainder:
                    output.append("[" + _class_body(remainder) + "]")
                else:
                    output.append(re.escape(char))
                break
            output.append("[" + _class_body(pattern[index + 1 : close]) + "]")
            index = close
        else:
            output.append(re.escape(char))
        index += 1
    return r"\A" + "".join(output) + r"\Z"


def _class_body(body: str) -> str:
    escaped = body.replace("\\", "\\\\").replace("[", "\\[")
    if escaped.startswith("]"):
        escaped = "\\" + escaped
    return escaped


@lru_cache(maxsize=1024)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob into a pattern matching whole filenames only."""
    return re.compile(glob_to_regex(pattern), re.DOTALL)


def glob_matches(pattern: str, filename: str) -> bool:
    """Return True when filename matches the glob in its entirety.

    A glob that does not form a valid class (such as ``[z-a]``) matches nothing.
    """
    try:
        compiled = compile_glob(pattern)
    except re.error:
        return False
    return compiled.match(filename) is not None
