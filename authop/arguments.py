"""Server command-line arguments: parsing from config and encoding as flags."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

ServerArguments = dict[str, list[str]]

_SHELL_ESCAPE_PATTERN = re.compile(r"[^\w@%+=:,./-]", re.ASCII)


def parse(raw: Mapping[str, Any]) -> ServerArguments:
    """Read server arguments whose values are strings or lists of strings."""
    args: ServerArguments = {}
    for name, value in raw.items():
        if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            args[name] = list(value)
        elif isinstance(value, str):
            args[name] = [value]
        else:
            raise ValueError(
                f"unable to create server arguments, incorrect value {value!r} under {name} key, "
                "expected []string or string"
            )
    return args


def shell_escape(s: str) -> str:
    """Return ``s`` as a single safe shell token."""
    if not s:
        return "''"
    if _SHELL_ESCAPE_PATTERN.search(s):
        return "'" + s.replace("'", "'\"'\"'") + "'"
    return s


def encode(args: Mapping[str, list[str]]) -> str:
    """Encode arguments as flags, one per line with shell line continuations."""
    return encode_with_delimiter(args, " \\\n")


def encode_with_delimiter(args: Mapping[str, list[str]], delimiter: str) -> str:
    """Encode arguments as ``--key=value`` flags sorted by key and joined by ``delimiter``."""
    return delimiter.join(
        f"--{shell_escape(key)}={shell_escape(value)}"
        for key in sorted(args)
        for value in args[key]
    )