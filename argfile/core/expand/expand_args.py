from __future__ import annotations

import logging
import re
import sys
from typing import BinaryIO, Iterable, Optional

from argfile.core.errors import (
    OptionFileCycleError,
    OptionFileReadError,
    OptionFileTokenizeError,
    TokenizationError,
)
from argfile.core.expand.expander_config import ExpanderConfig
from argfile.core.io.file_provider import (
    OPTION_FILE_ENCODING,
    FileSystemProvider,
    OptionFileProvider,
)
from argfile.core.tokenize.tokenize_line import Tokenizer, tokenize_line

logger = logging.getLogger(__name__)

OPTION_FILE_PREFIX = "@"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(data: bytes) -> list[str]:
    """Decode option file bytes and split them into lines.

    Lines end at \\n, \\r\\n or \\r. A final terminator does not start an
    extra empty line. latin-1 maps every byte, so decoding never fails.
    """
    text = data.decode(OPTION_FILE_ENCODING)
    if not text:
        return []
    lines = _LINE_BREAK.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def _read_error(path: str, e: OSError, *, code: str = "E_FILE_READ") -> OptionFileReadError:
    if isinstance(e, FileNotFoundError):
        code = "E_FILE_NOT_FOUND"
    elif isinstance(e, PermissionError):
        code = "E_FILE_PERMISSION"
    reason = e.strerror or str(e) or type(e).__name__
    return OptionFileReadError(code=code, message=f"cannot read option file: {reason}", file=path)


class OptionFileExpander:
    """Expands `@file` arguments into the tokenized contents of the file.

    File access and tokenization are injected so tests can run against an
    in-memory provider. Expansion is recursive: tokens read from a file may
    reference further option files.
    """

    def __init__(
        self,
        provider: OptionFileProvider,
        *,
        tokenizer: Tokenizer = tokenize_line,
        config: Optional[ExpanderConfig] = None,
    ) -> None:
        self.provider = provider
        self.tokenizer = tokenizer
        self.config = config or ExpanderConfig()

    def expand_arguments(self, args: Iterable[str]) -> list[str]:
        """Return a new list with every `@file` argument expanded in place.

        Raises OptionFileReadError if a referenced file cannot be opened or
        read, OptionFileTokenizeError on malformed quoting, and
        OptionFileCycleError when a file references itself (cycle detection on).
        The first failure aborts the whole call.
        """
        expanded: list[str] = []
        for arg in args:
            self._expand_argument(arg, expanded, [])
        return expanded

    def _expand_argument(self, arg: str, expanded: list[str], chain: list[str]) -> None:
        if not arg.startswith(OPTION_FILE_PREFIX):
            expanded.append(arg)
            return

        path = arg[len(OPTION_FILE_PREFIX) :]
        if self.config.detect_cycles:
            resolve = getattr(self.provider, "resolve", None)
            identity = resolve(path) if resolve is not None else path
            if identity in chain:
                cycle = chain[chain.index(identity) :] + [identity]
                raise OptionFileCycleError(
                    code="E_CYCLE",
                    message="option file references itself: " + " -> ".join(cycle),
                    file=path,
                    chain=cycle,
                )
            chain = chain + [identity]

        try:
            stream = self.provider.open(path)
        except OSError as e:
            raise _read_error(path, e) from e
        logger.debug("expanding option file %s (depth=%d)", path, len(chain))

        try:
            for lineno, line in enumerate(self._read_lines(stream, path), start=1):
                try:
                    tokens = self.tokenizer(line)
                except TokenizationError as e:
                    raise OptionFileTokenizeError(
                        code="E_TOKENIZE",
                        message=f"could not tokenize option file line: {e}",
                        file=path,
                        line=lineno,
                    ) from e
                for token in tokens:
                    self._expand_argument(token, expanded, chain)
        except BaseException:
            try:
                stream.close()
            except OSError as close_error:
                # Keep the error already in flight.
                logger.debug("ignoring close failure for %s: %s", path, close_error)
            raise

        try:
            stream.close()
        except OSError as e:
            raise _read_error(path, e, code="E_FILE_CLOSE") from e

    def _read_lines(self, stream: BinaryIO, path: str) -> list[str]:
        try:
            data = stream.read()
        except OSError as e:
            raise _read_error(path, e) from e
        return split_lines(data)


def expand_argv(
    argv: Optional[Iterable[str]] = None,
    *,
    base_dir: Optional[str] = None,
    config: Optional[ExpanderConfig] = None,
) -> list[str]:
    """Expand command-line arguments against the filesystem.

    Defaults to sys.argv[1:]. Relative option file names resolve against
    base_dir, then config.base_dir, then the working directory.
    """
    config = config or ExpanderConfig()
    provider = FileSystemProvider(base_dir or config.base_dir)
    expander = OptionFileExpander(provider, config=config)
    return expander.expand_arguments(sys.argv[1:] if argv is None else argv)
