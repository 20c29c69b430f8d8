"""
Reading file content as text: binary and image detection, UTF-8 decoding.
"""

import logging
import mimetypes
from typing import Optional

logger = logging.getLogger("ark-content")

SNIFF_BYTES = 8000
CONTROL_RATIO_LIMIT = 0.1
_TEXT_CONTROLS = {0x09, 0x0A, 0x0D}


class NotTextError(ValueError):
    """A file is binary or not valid UTF-8"""

    IMAGE = "image"
    BINARY = "binary"
    ENCODING = "encoding"
    LINE_LENGTH = "line-length"

    def __init__(self, path: str, kind: str, reason: str):
        self.path = path
        self.kind = kind
        self.reason = reason
        super().__init__(f"{path}: {reason}")


def _control_ratio(sample: bytes) -> float:
    controls = sum(1 for b in sample if b < 0x20 and b not in _TEXT_CONTROLS)
    return controls / len(sample)


def looks_binary(data: bytes) -> bool:
    """NUL byte or too many control characters in the leading bytes"""
    sample = data[:SNIFF_BYTES]
    if not sample:
        return False
    if b"\x00" in sample:
        return True
    return _control_ratio(sample) > CONTROL_RATIO_LIMIT


def is_binary(data: bytes) -> bool:
    """Binary per ``looks_binary``, or not decodable as UTF-8"""
    if looks_binary(data):
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


def is_image(path: str) -> bool:
    mime_type, _ = mimetypes.guess_type(path)
    return bool(mime_type) and mime_type.startswith("image/")


def read_text(path: str, max_line_bytes: Optional[int] = None) -> str:
    """
    Read ``path`` as UTF-8 text.

    Args:
        path: File to read
        max_line_bytes: Reject files with a longer line

    Raises:
        OSError: If the file cannot be read
        NotTextError: If the file is an image, binary, not UTF-8, or has
            an over-long line
    """
    if is_image(path):
        raise NotTextError(path, NotTextError.IMAGE, "image file")

    with open(path, "rb") as f:
        data = f.read()

    if looks_binary(data):
        raise NotTextError(path, NotTextError.BINARY, "binary file")

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise NotTextError(path, NotTextError.ENCODING, f"not valid UTF-8 ({e.reason} at byte {e.start})") from e

    if max_line_bytes:
        longest = max((len(line) for line in data.split(b"\n")), default=0)
        if longest > max_line_bytes:
            raise NotTextError(path, NotTextError.LINE_LENGTH, f"line of {longest} bytes exceeds scan buffer of {max_line_bytes} bytes")

    return text.replace("\r\n", "\n")
