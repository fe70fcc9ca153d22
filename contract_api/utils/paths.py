"""
Path template helpers.

Templates use ``:name`` placeholders, e.g. ``/users/:id/posts/:post_id``.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import quote

_PARAM_COLON = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


def placeholders(template: str) -> Tuple[str, ...]:
    """Placeholder names in order of appearance, without duplicates."""
    seen: list[str] = []
    for name in _PARAM_COLON.findall(template or ""):
        if name not in seen:
            seen.append(name)
    return tuple(seen)


def interpolate(template: str, path_params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Replace every ``:key`` of ``template`` with the matching value of ``path_params``.

    Values are stringified and percent-encoded as a single path segment, so a
    value such as ``"a/b"`` becomes ``a%2Fb``. Placeholders without a value are
    left untouched.
    """
    if not path_params:
        return template

    def _sub(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in path_params:
            return match.group(0)
        return quote(str(path_params[name]), safe="")

    return _PARAM_COLON.sub(_sub, template)
