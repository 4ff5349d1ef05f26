from __future__ import annotations

from pathlib import Path

BYTE_ORDER_MARK = b"\xef\xbb\xbf"


def strip_bom(data: bytes) -> bytes:
    if data.startswith(BYTE_ORDER_MARK):
        return data[len(BYTE_ORDER_MARK) :]
    return data


def read_file(path: Path) -> bytes:
    return strip_bom(Path(path).read_bytes())
