from __future__ import annotations

__all__ = [
    "luabins",
    "rand",
    "reader",
    "save",
]
