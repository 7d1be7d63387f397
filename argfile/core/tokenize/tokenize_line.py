from __future__ import annotations

import shlex
from typing import Callable

from argfile.core.errors import TokenizationError

Tokenizer = Callable[[str], list[str]]


def tokenize_line(line: str) -> list[str]:
    """Split one line into arguments using POSIX shell quoting rules.

    Single quotes are literal. Inside double quotes a backslash only escapes
    `\\` and `"`. Comments are not recognized, so `#` is an ordinary character.
    Escaped newlines are not joined; every line stands alone.
    """
    lexer = shlex.shlex(line, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError as e:
        raise TokenizationError(f"{e}: {line!r}") from e
