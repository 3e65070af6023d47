"""
Argument parsing for prefix commands.

Turns the text after a command name into a flag map and a list of
positional words. Parsing never fails: anything that does not look like a
flag ends up as a positional argument.
"""

import re
from types import MappingProxyType
from typing import Mapping, NamedTuple, Sequence, Tuple, Union

# A word, possibly with quoted phrases glued to it (key="two words")
TOKEN_PATTERN = re.compile(r"""(?:[^\s"']+|"[^"]*"|'[^']*')+""")
SEGMENT_PATTERN = re.compile(r"""[^\s"']+|"([^"]*)"|'([^']*)'""")


class ParsedArgs(NamedTuple):
    map: Mapping[str, str]
    unnamed: Tuple[str, ...]


def tokenize(raw: str):
    """Split raw text into words, keeping quoted phrases together and dropping their quotes"""
    tokens = []
    for match in TOKEN_PATTERN.finditer(raw.strip()):
        parts = []
        for segment in SEGMENT_PATTERN.finditer(match.group(0)):
            if segment.group(1) is not None:
                parts.append(segment.group(1))
            elif segment.group(2) is not None:
                parts.append(segment.group(2))
            else:
                parts.append(segment.group(0))
        tokens.append("".join(parts))
    return tokens


def _split_once(token: str, separator: str):
    key, _, value = token.partition(separator)
    return key, value


def parse_args(input: Union[str, Sequence[str]]) -> ParsedArgs:
    """Parse prefix command arguments into (map, unnamed).

    Recognised forms, in order: ``--key=value``, ``--key:value``,
    ``--key value``, ``--flag``, ``-abc`` (each letter becomes a flag),
    ``key=value`` and ``key:value``. Everything else is positional.
    """
    if isinstance(input, str):
        tokens = tokenize(input)
    else:
        tokens = list(input or [])

    flags = {}
    unnamed = []

    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if not token:
            continue

        if token.startswith("--"):
            body = token[2:]
            eq_idx = body.find("=")
            colon_idx = body.find(":")

            if eq_idx != -1 and (colon_idx == -1 or eq_idx < colon_idx):
                key, value = _split_once(body, "=")
                flags[key] = value
            elif colon_idx != -1:
                key, value = _split_once(body, ":")
                flags[key] = value
            elif i < len(tokens) and not tokens[i].startswith("-"):
                flags[body] = tokens[i]
                i += 1
            else:
                flags[body] = "true"
            continue

        if token.startswith("-") and len(token) > 1:
            for letter in token[1:]:
                flags[letter] = "true"
            continue

        if "=" in token:
            key, value = _split_once(token, "=")
            flags[key] = value
            continue

        if ":" in token:
            key, value = _split_once(token, ":")
            flags[key] = value
            continue

        unnamed.append(token)

    return ParsedArgs(MappingProxyType(flags), tuple(unnamed))
