"""Token grammar: `name` or `name[arg1,arg2]`."""
import re
from dataclasses import dataclass

from .errors import MalformedTokenError

_TOKEN_RE = re.compile(r"([\w$-]+)(?:\[(.+)\])?")


@dataclass(frozen=True)
class Token:
    raw: str
    key: str
    args: tuple[str, ...] = ()


def parse_token(text: str) -> Token:
    """
    Parse one token spec. `raw` keeps the text verbatim (used as the record field name),
    `key` is lowercased for lookup. Raises MalformedTokenError on anything the grammar rejects.
    """
    if not isinstance(text, str):
        raise MalformedTokenError(repr(text))
    m = _TOKEN_RE.fullmatch(text)
    if m is None:
        raise MalformedTokenError(text)
    args = tuple(a.strip() for a in m.group(2).split(",")) if m.group(2) is not None else ()
    return Token(raw=text, key=m.group(1).lower(), args=args)
