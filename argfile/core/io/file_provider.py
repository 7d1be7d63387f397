from __future__ import annotations

import io
import os
from pathlib import Path
from typing import BinaryIO, Mapping, Optional, Protocol, Union

OPTION_FILE_ENCODING = "latin-1"


class OptionFileProvider(Protocol):
    """Opens option files by name.

    Providers may also define `resolve(name) -> str` returning a stable file
    identity for self-reference checks. Without it the name itself is used.
    """

    def open(self, name: str) -> BinaryIO:
        """Open `name` for reading. Raises OSError when it cannot be opened."""
        ...


class FileSystemProvider:
    """Reads option files from disk. Relative names resolve against base_dir."""

    def __init__(self, base_dir: Union[str, Path, None] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def _path(self, name: str) -> Path:
        p = Path(name)
        if p.is_absolute() or self.base_dir is None:
            return p
        return self.base_dir / p

    def open(self, name: str) -> BinaryIO:
        return self._path(name).open("rb")

    def resolve(self, name: str) -> str:
        return os.path.realpath(self._path(name))


class _TrackedStream(io.BytesIO):
    def __init__(self, data: bytes, owner: "InMemoryProvider", name: str) -> None:
        super().__init__(data)
        self._owner = owner
        self.name = name

    def close(self) -> None:
        if not self.closed:
            self._owner.open_handles.remove(self)
            if self.name in self._owner.fail_on_close:
                super().close()
                raise OSError(f"simulated close failure: {self.name}")
        super().close()


class InMemoryProvider:
    """Option files held in memory, keyed by the verbatim name.

    str contents are stored as latin-1 bytes. `opened` records every open call
    in order and `open_handles` holds streams that were not closed yet.
    Names listed in `fail_on_close` raise OSError when their stream is closed.
    """

    def __init__(
        self,
        files: Optional[Mapping[str, Union[bytes, str]]] = None,
        *,
        fail_on_close: tuple[str, ...] = (),
    ) -> None:
        self.files: dict[str, bytes] = {}
        for name, content in (files or {}).items():
            if isinstance(content, str):
                content = content.encode(OPTION_FILE_ENCODING)
            self.files[name] = content
        self.fail_on_close = set(fail_on_close)
        self.opened: list[str] = []
        self.open_handles: list[BinaryIO] = []

    def open(self, name: str) -> BinaryIO:
        if name not in self.files:
            raise FileNotFoundError(2, "No such file or directory", name)
        stream = _TrackedStream(self.files[name], self, name)
        self.opened.append(name)
        self.open_handles.append(stream)
        return stream

    def resolve(self, name: str) -> str:
        return name
