import io
from pathlib import Path

import pytest

from argfile.core.errors import OptionFileCycleError
from argfile.core.expand.expand_args import OptionFileExpander, expand_argv
from argfile.core.expand.expander_config import ExpanderConfig
from argfile.core.io.file_provider import InMemoryProvider


def test_direct_self_reference_is_detected():
    provider = InMemoryProvider({"self": "a @self"})
    try:
        OptionFileExpander(provider).expand_arguments(["@self"])
        assert False, "expected OptionFileCycleError"
    except OptionFileCycleError as e:
        assert e.code == "E_CYCLE"
        assert e.chain == ["self", "self"]
    assert provider.open_handles == []


def test_indirect_cycle_reports_only_the_loop():
    provider = InMemoryProvider({"top": "@a", "a": "@b", "b": "@a"})
    with pytest.raises(OptionFileCycleError) as exc_info:
        OptionFileExpander(provider).expand_arguments(["@top"])
    assert exc_info.value.chain == ["a", "b", "a"]
    assert "a -> b -> a" in str(exc_info.value)


def test_same_file_twice_side_by_side_is_not_a_cycle():
    provider = InMemoryProvider({"top": "@common @common", "common": "x"})
    assert OptionFileExpander(provider).expand_arguments(["@top", "@common"]) == ["x", "x", "x"]


def test_cycle_detection_off_recurses_until_exhausted():
    provider = InMemoryProvider({"self": "@self"})
    expander = OptionFileExpander(provider, config=ExpanderConfig(detect_cycles=False))
    with pytest.raises(RecursionError):
        expander.expand_arguments(["@self"])


def test_cycle_detected_through_different_spellings_on_disk(tmp_path: Path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "loop").write_text("@sub/../loop\n", encoding="latin-1")
    with pytest.raises(OptionFileCycleError):
        expand_argv(["@loop"], base_dir=str(tmp_path))


class _OpenOnlyProvider:
    def __init__(self, files: dict) -> None:
        self.files = files

    def open(self, name: str):
        return io.BytesIO(self.files[name])


def test_provider_without_resolve_expands():
    provider = _OpenOnlyProvider({"f": b"a @g", "g": b"b"})
    assert OptionFileExpander(provider).expand_arguments(["@f"]) == ["a", "b"]


def test_provider_without_resolve_detects_cycles_by_name():
    provider = _OpenOnlyProvider({"a": b"@b", "b": b"@a"})
    with pytest.raises(OptionFileCycleError) as exc_info:
        OptionFileExpander(provider).expand_arguments(["@a"])
    assert exc_info.value.chain == ["a", "b", "a"]
