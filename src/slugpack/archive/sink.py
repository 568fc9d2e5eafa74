"""Size-limited writer guarding the compressed archive stream."""

from typing import BinaryIO

from ..core.exceptions import MaxSizeExceededError


class MaxSizeWriter:
    """
    Wrap a writer, recording the number of bytes written and raising once
    the total exceeds a maximum. A maximum of zero disables the check.

    Placed after the compressor, the limit applies to compressed bytes, so
    packing fails as soon as the limit is crossed rather than after the
    whole archive has been buffered.
    """

    def __init__(self, w: BinaryIO, max_size: int = 0):
        if max_size < 0:
            raise ValueError(f"max_size must not be negative: {max_size}")
        self.w = w
        self.max_size = max_size
        self.tally = 0
        self.discarding = False

    def write(self, data) -> int:
        size = memoryview(data).nbytes
        if self.discarding:
            return size

        self.tally += size
        if self.max_size and self.tally > self.max_size:
            raise MaxSizeExceededError(self.max_size)

        self.w.write(data)
        return size

    def flush(self) -> None:
        if not self.discarding and hasattr(self.w, "flush"):
            self.w.flush()

    def discard(self) -> None:
        """Drop all further writes; used once the output is known to be unusable."""
        self.discarding = True
