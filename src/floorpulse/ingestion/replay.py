from __future__ import annotations

from typing import IO, List


class ReplaySource:
    """Serve recorded frames from a text stream, a batch per fetch.

    With ``owns_stream`` the stream is closed by ``close()``; stdin is left open.
    """

    def __init__(self, stream: IO[str], batch_size: int = 1, owns_stream: bool = False) -> None:
        self._stream = stream
        self._batch_size = max(batch_size, 1)
        self._owns_stream = owns_stream
        self.exhausted = False

    @classmethod
    def open(cls, path: str, batch_size: int = 1) -> "ReplaySource":
        return cls(open(path, "r", encoding="utf-8"), batch_size=batch_size, owns_stream=True)

    def fetch(self) -> List[str]:
        frames: List[str] = []
        while len(frames) < self._batch_size:
            line = self._stream.readline()
            if not line:
                self.exhausted = True
                break
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            frames.append(line)
        return frames

    def close(self) -> None:
        self.exhausted = True
        if self._owns_stream and not self._stream.closed:
            self._stream.close()
