from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ByteRange:
    """A window of byte offsets; `end` is exclusive, None means open-ended.

    A suffix window selects the last `suffix` bytes of the object and carries
    no offsets of its own.
    """

    begin: int | None = None
    end: int | None = None
    suffix: int | None = None

    def __post_init__(self) -> None:
        for value in (self.begin, self.end, self.suffix):
            if value is not None and value < 0:
                raise ValueError("Range offsets must be non-negative")
        if self.suffix is not None and (self.begin is not None or self.end is not None):
            raise ValueError("A suffix range takes no begin or end")
        if self.begin is not None and self.end is not None and self.begin > self.end:
            raise ValueError("Range begin must not be greater than end")

    @property
    def start(self) -> int:
        return self.begin or 0

    @property
    def is_empty(self) -> bool:
        if self.suffix is not None:
            return self.suffix == 0
        return self.end is not None and self.end <= self.start

    def header(self) -> str | None:
        """Render as an HTTP Range header value, None for the whole object."""
        if self.suffix is not None:
            return f"bytes=-{self.suffix}" if self.suffix else None
        if self.end is None:
            if self.start == 0:
                return None
            return f"bytes={self.start}-"
        if self.is_empty:
            return None
        # http ranges are inclusive
        return f"bytes={self.start}-{self.end - 1}"


def _is_offset(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_slice_args(
    begin_or_type: int | str | None = None,
    end_or_type: int | str | None = None,
    content_type: str | None = None,
) -> tuple[int | None, int | None, str | None]:
    """Resolve the three slice() call shapes into (begin, end, content_type).

    slice(content_type), slice(begin, content_type) and
    slice(begin, end, content_type=None) are accepted.
    """
    begin: int | None = None
    end: int | None = None
    type_: str | None = None

    if isinstance(begin_or_type, str):
        if end_or_type is not None or content_type is not None:
            raise TypeError("slice(content_type) takes no further arguments")
        type_ = begin_or_type
    elif _is_offset(begin_or_type):
        begin = begin_or_type  # type: ignore[assignment]
        if isinstance(end_or_type, str):
            if content_type is not None:
                raise TypeError("slice(begin, content_type) takes no further arguments")
            type_ = end_or_type
        elif _is_offset(end_or_type):
            end = end_or_type  # type: ignore[assignment]
            type_ = content_type
        elif end_or_type is None:
            type_ = content_type
        else:
            raise TypeError(f"Invalid slice end: {end_or_type!r}")
    elif begin_or_type is None:
        if end_or_type is not None:
            raise TypeError("slice() end given without begin")
        type_ = content_type
    else:
        raise TypeError(f"Invalid slice begin: {begin_or_type!r}")

    for value in (begin, end):
        if value is not None and value < 0:
            raise ValueError("Slice offsets must be non-negative")
    return begin, end, type_


def compose(current: ByteRange | None, begin: int | None, end: int | None) -> ByteRange | None:
    """Apply relative offsets to an existing window.

    Offsets are relative to the current begin, and the current end is never
    extended. With neither offset the current range is returned unchanged.
    """
    if begin is None and end is None:
        return current
    if current is not None and current.suffix is not None:
        raise ValueError("A suffix window cannot be sliced by offset")

    existing_begin = current.start if current is not None else 0
    existing_end = current.end if current is not None else None

    new_begin = existing_begin + begin if begin is not None else existing_begin
    new_end: int | None
    if end is None:
        new_end = existing_end
    elif existing_end is None:
        new_end = existing_begin + end
    else:
        new_end = min(existing_begin + end, existing_end)

    # keep begin <= end, an inverted window is just empty
    if new_end is not None and new_end < new_begin:
        new_end = new_begin
    return ByteRange(begin=new_begin, end=new_end)


def tail_of(current: ByteRange | None, length: int) -> ByteRange:
    """The last `length` bytes of the current window.

    Over the whole object (or an open window from 0) this is a suffix range.
    A bounded window is narrowed to its own last bytes. An open window that
    starts later cannot be expressed as a single HTTP range.
    """
    if not _is_offset(length):
        raise TypeError(f"Invalid suffix length: {length!r}")
    if length < 0:
        raise ValueError("Suffix length must be non-negative")
    if current is None:
        return ByteRange(suffix=length)
    if current.suffix is not None:
        return ByteRange(suffix=min(current.suffix, length))
    if current.end is None:
        if current.start == 0:
            return ByteRange(suffix=length)
        raise ValueError("Cannot take the tail of an open window that does not start at 0")
    return ByteRange(max(current.start, current.end - length), current.end)
