import logging
import re
from typing import Optional

from grabtest.schemas import ResolvedRange

logger = logging.getLogger(__name__)

_RANGE_PATTERN = re.compile(r"^\s*bytes\s*=\s*(\d*)\s*-\s*(\d*)\s*$", re.IGNORECASE | re.ASCII)


class RangeNotSatisfiable(Exception):
    def __init__(self, range_header: str, content_length: int):
        self.status_code = 416
        self.range_header = range_header
        self.content_length = content_length
        self.message = f"Range {range_header!r} cannot be satisfied by {content_length} bytes"
        super().__init__(self.message)


def resolve_range(range_header: Optional[str], content_length: int, accept_ranges: bool) -> Optional[ResolvedRange]:
    """
    Resolve a Range request header against the synthetic body.

    Supported forms are ``bytes=N-``, ``bytes=N-M`` and the suffix form
    ``bytes=-N``. Anything else, including multi-range requests, is treated as
    if no range had been requested.

    Args:
        range_header (str, optional): Raw value of the Range request header.
        content_length (int): Total size of the body.
        accept_ranges (bool): Whether range requests are honored at all.

    Returns:
        ResolvedRange | None: The inclusive byte span to serve, or None to serve the full body.

    Raises:
        RangeNotSatisfiable: If the range lies entirely outside the body.
    """
    if not accept_ranges or not range_header:
        return None

    match = _RANGE_PATTERN.match(range_header)
    if not match:
        logger.debug(f"Ignoring unsupported Range header: {range_header!r}")
        return None

    first, last = match.groups()
    if not first and not last:
        return None

    if not first:
        # bytes=-N selects the final N bytes
        suffix_length = int(last)
        if suffix_length == 0 or content_length == 0:
            raise RangeNotSatisfiable(range_header, content_length)
        start = max(content_length - suffix_length, 0)
        return ResolvedRange(start=start, end=content_length - 1)

    start = int(first)
    if last:
        end = int(last)
        if end < start:
            logger.debug(f"Ignoring Range header with end before start: {range_header!r}")
            return None
    else:
        end = content_length - 1

    if start >= content_length:
        raise RangeNotSatisfiable(range_header, content_length)

    return ResolvedRange(start=start, end=min(end, content_length - 1))
