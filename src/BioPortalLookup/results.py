# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.results",
#   "purpose": "Tagged lookup outcomes shared by the dispatcher and the memo caches",
#   "sections": [
#     {"id": "notfound", "name": "NotFound", "anchor": "class-notfound", "kind": "class"},
#     {"id": "found", "name": "Found", "anchor": "class-found", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Tagged outcomes: ``Found(value)`` or the ``NOT_FOUND`` marker.

``NOT_FOUND`` means "confirmed absent upstream". It is distinct from ``None``
(never looked up, or resolution failed before any call) and is stored in the
caches as an ordinary value so that repeated lookups of a missing key do not
hit the network again.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

__all__ = ["NotFound", "NOT_FOUND", "Found", "Outcome"]

V = TypeVar("V")


class NotFound(enum.Enum):
    """Singleton marker for a resource the remote service reported as missing."""

    TOKEN = "not-found"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFound.TOKEN


@dataclass(frozen=True)
class Found(Generic[V]):
    """A positive lookup outcome wrapping the fetched value."""

    value: V


Outcome = Union[Found[V], NotFound]
