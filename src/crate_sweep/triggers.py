# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Event filter deciding whether a pull request or push runs the sweep.

Patterns follow the workflow filter syntax: ``*`` stays inside one path
segment, ``**`` crosses directory boundaries and ``**/`` may also match no
directory at all. ``?`` is one character other than ``/``, ``[...]`` is a
character class (ranges such as ``[0-9]`` allowed) and ``+`` repeats the
preceding character or class one or more times. A leading ``!`` negates a
pattern and the last pattern that matches a value decides whether it is
selected.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Sequence, Tuple

DEFAULT_PUSH_PATHS: Tuple[str, ...] = ("**/Cargo.toml", "**/src/**", "**/tests/**")


@functools.lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern[str]:
    parts = []
    repeatable = False
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            repeatable = False
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            repeatable = False
            i += 2
        elif char == "*":
            parts.append("[^/]*")
            repeatable = False
            i += 1
        elif char == "?":
            parts.append("[^/]")
            repeatable = True
            i += 1
        elif char == "+" and repeatable:
            parts[-1] += "+"
            repeatable = False
            i += 1
        elif char == "[" and pattern.find("]", i + 2) != -1:
            end = pattern.find("]", i + 2)
            body = pattern[i + 1:end].replace("\\", "\\\\").replace("[", "\\[")
            if body.startswith("^"):
                body = "\\" + body
            parts.append(f"[{body}]")
            repeatable = True
            i = end + 1
        else:
            parts.append(re.escape(char))
            repeatable = True
            i += 1
    return re.compile("".join(parts))


def match_any(patterns: Iterable[str], value: str) -> bool:
    selected = False
    for pattern in patterns:
        negated = pattern.startswith("!")
        if compile_glob(pattern[1:] if negated else pattern).fullmatch(value):
            selected = not negated
    return selected


def normalize_path(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def strip_ref(ref: str) -> str:
    if ref.startswith("refs/heads/"):
        return ref[len("refs/heads/"):]
    return ref


@dataclass(frozen=True)
class TriggerFilter:
    """Branch and path filters per event.

    ``None`` for a branch list means the event is not a trigger at all;
    ``None`` for ``push_paths`` means pushes are not path-filtered.
    """

    pull_request_branches: Optional[Tuple[str, ...]] = ("main",)
    push_branches: Optional[Tuple[str, ...]] = ("**",)
    push_paths: Optional[Tuple[str, ...]] = DEFAULT_PUSH_PATHS

    def matches(self, event: str, branch: str, changed_files: Sequence[str] = ()) -> bool:
        if branch.startswith("refs/tags/"):
            return False
        branch = strip_ref(branch)
        if event == "pull_request":
            return self.pull_request_branches is not None and match_any(self.pull_request_branches, branch)
        if event == "push":
            if self.push_branches is None or not match_any(self.push_branches, branch):
                return False
            if self.push_paths is None:
                return True
            return any(match_any(self.push_paths, normalize_path(path)) for path in changed_files)
        return False


DEFAULT_TRIGGER = TriggerFilter()
