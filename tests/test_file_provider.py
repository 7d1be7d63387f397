import os
from pathlib import Path

import pytest

from argfile.core.io.file_provider import FileSystemProvider, InMemoryProvider


def test_filesystem_provider_reads_relative_to_base_dir(tmp_path: Path):
    (tmp_path / "opts").write_bytes(b"-v\n")
    provider = FileSystemProvider(tmp_path)
    with provider.open("opts") as f:
        assert f.read() == b"-v\n"
    assert provider.resolve("opts") == os.path.realpath(tmp_path / "opts")


def test_filesystem_provider_absolute_name_ignores_base_dir(tmp_path: Path):
    p = tmp_path / "abs-opts"
    p.write_bytes(b"x")
    provider = FileSystemProvider(tmp_path / "elsewhere")
    with provider.open(str(p)) as f:
        assert f.read() == b"x"


def test_filesystem_provider_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        FileSystemProvider(tmp_path).open("nope")


def test_filesystem_provider_resolve_follows_dot_segments(tmp_path: Path):
    (tmp_path / "sub").mkdir()
    provider = FileSystemProvider(tmp_path)
    assert provider.resolve("sub/../opts") == provider.resolve("opts")


def test_in_memory_provider_encodes_str_as_latin1():
    provider = InMemoryProvider({"f": "café"})
    with provider.open("f") as f:
        assert f.read() == b"caf\xe9"
    assert provider.opened == ["f"]
    assert provider.open_handles == []


def test_in_memory_provider_tracks_open_handles():
    provider = InMemoryProvider({"f": b"a"})
    stream = provider.open("f")
    assert provider.open_handles == [stream]
    stream.close()
    assert provider.open_handles == []


def test_in_memory_provider_unknown_name():
    provider = InMemoryProvider({})
    with pytest.raises(FileNotFoundError):
        provider.open("missing")
    assert provider.opened == []


def test_in_memory_provider_simulated_close_failure():
    provider = InMemoryProvider({"f": b"a"}, fail_on_close=("f",))
    stream = provider.open("f")
    with pytest.raises(OSError):
        stream.close()
    assert stream.closed
    assert provider.open_handles == []
