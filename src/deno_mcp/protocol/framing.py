#
# src/deno_mcp/protocol/framing.py
#
"""
Newline framing for a byte stream.
"""

from attrs import field, mutable

DELIMITER = b"\n"


@mutable(slots=True)
class FrameBuffer:
    """
    Accumulates raw stream bytes and cuts them into complete lines.

    Splitting happens on raw bytes, so a multi-byte UTF-8 character split
    across two reads is reassembled before anything is decoded. A trailing
    carriage return is stripped from each frame and blank lines are dropped.
    """

    _data: bytearray = field(factory=bytearray, init=False)

    def __len__(self) -> int:
        return len(self._data)

    def feed(self, chunk: bytes) -> list[bytes]:
        """Appends a chunk and returns every frame it completed, in order."""
        self._data.extend(chunk)
        frames: list[bytes] = []
        start = 0
        while True:
            index = self._data.find(DELIMITER, start)
            if index < 0:
                break
            frame = self._clean(self._data[start:index])
            if frame:
                frames.append(frame)
            start = index + 1
        if start:
            del self._data[:start]
        return frames

    def flush(self) -> bytes | None:
        """
        Returns the unterminated remainder at end of stream, if any.

        A peer that exits without writing a final newline still gets its last
        message delivered.
        """
        frame = self._clean(self._data)
        self._data.clear()
        return frame or None

    def clear(self) -> None:
        self._data.clear()

    @staticmethod
    def _clean(raw: bytearray) -> bytes:
        frame = bytes(raw)
        if frame.endswith(b"\r"):
            frame = frame[:-1]
        return frame if frame.strip() else b""
