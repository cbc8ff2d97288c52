from __future__ import annotations

from typing import (
    Any,
    Iterator,
    List,
    Literal,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
    Union,
)

"""
Header containers and the Cache-Control directive parser.

Directive names and values follow the token / quoted-string grammar of
RFC 7230 Section 3.2.6.
"""

__all__ = ("Headers", "CacheControl", "parse_cache_control")

MAX_DELTA_SECONDS = 2147483647

SEPARATORS = '()<>@,;:\\"/[]?={} \t'


def is_token(c: str) -> bool:
    """
    Check if character is valid in an HTTP token.

    tchar = "!" / "#" / "$" / "%" / "&" / "'" / "*" / "+" / "-" / "."
          / DIGIT / ALPHA / "^" / "_" / "`" / "|" / "~"

    Examples:
        >>> is_token('a')
        True
        >>> is_token('-')
        True
        >>> is_token(',')
        False
    """
    if not c:
        return False
    code = ord(c)
    return 31 < code < 127 and c not in SEPARATORS


def is_qd_text(c: str) -> bool:
    # qdtext = HTAB / SP / %x21 / %x23-5B / %x5D-7E / obs-text
    if not c:
        return False
    code = ord(c)
    return code in (0x09, 0x20, 0x21) or 0x23 <= code <= 0x5B or 0x5D <= code <= 0x7E or code >= 0x80


def http_unquote(raw: str) -> Tuple[int, str]:
    """
    Unquote the quoted-string at the start of `raw`.

    Returns:
        Tuple of (consumed, value). `consumed` is -1 when the string is not
        a well-formed quoted-string.

    Examples:
        >>> http_unquote('"30"')
        (4, '30')
        >>> http_unquote('"a\\\\"b"')
        (6, 'a"b')
        >>> http_unquote('"open')
        (-1, '')
    """
    if not raw or raw[0] != '"':
        return -1, ""

    chars: List[str] = []
    position = 1

    while position < len(raw):
        char = raw[position]

        if char == '"':
            return position + 1, "".join(chars)

        if char == "\\":
            if position + 1 >= len(raw):
                return -1, ""
            escaped = raw[position + 1]
            code = ord(escaped)
            chars.append(escaped if code == 0x09 or (code >= 0x20 and code != 0x7F) else "?")
            position += 2
            continue

        chars.append(char if is_qd_text(char) else "?")
        position += 1

    return -1, ""


class Headers(MutableMapping[str, str]):
    """
    Case-insensitive header mapping.

    Names are stored lowercased. A name may carry several values;
    item access joins them with ", ".
    """

    def __init__(self, headers: Mapping[str, Union[str, List[str]]]) -> None:
        self._headers = {k.lower(): ([v] if isinstance(v, str) else v[:]) for k, v in headers.items()}

    def get_list(self, key: str) -> Optional[List[str]]:
        return self._headers.get(key.lower(), None)

    def multi_items(self) -> List[Tuple[str, str]]:
        return [(key, value) for key, values in self._headers.items() for value in values]

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), []).append(value)

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return repr(self._headers)

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers

    def replace(self, key: str, value: str) -> "Headers":
        """Return a copy in which `key` carries only `value`."""
        updated = Headers(self._headers)
        updated._headers[key.lower()] = [value]
        return updated


class CacheControl:
    """
    Parsed Cache-Control directives shared by requests and responses.

    Time-valued directives are None when absent or malformed; a
    present-but-malformed value never turns into zero.

    max_stale can be:
        - None: directive not present (or malformed)
        - True: directive present without a value (any staleness accepted)
        - int: accepted staleness in seconds
    """

    def __init__(self) -> None:
        self.max_age: Optional[int] = None
        self.no_cache: bool = False
        self.no_store: bool = False

        # Request-specific
        self.max_stale: Union[int, Literal[True], None] = None
        self.min_fresh: Optional[int] = None

        # Response-specific
        self.s_maxage: Optional[int] = None
        self.must_revalidate: bool = False
        self.private: bool = False
        self.public: bool = False

        # Unrecognized directives, kept verbatim
        self.extensions: List[str] = []

    def __repr__(self) -> str:
        fields = []
        for name, value in vars(self).items():
            if value is None or value is False or value == []:
                continue
            fields.append(name if value is True else f"{name}={value!r}")
        return f"<{type(self).__name__} {', '.join(fields)}>"


def parse_delta_seconds(value: str) -> Optional[int]:
    """Parse a delta-seconds value, None if it is not a non-negative integer."""
    # isdigit() alone also accepts "²" and other non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        return None
    return min(int(value), MAX_DELTA_SECONDS)


def handle_directive(cc: CacheControl, token: str, value: Optional[str]) -> None:
    if token == "max-age":
        cc.max_age = parse_delta_seconds(value) if value is not None else None

    elif token == "s-maxage":
        cc.s_maxage = parse_delta_seconds(value) if value is not None else None

    elif token == "min-fresh":
        cc.min_fresh = parse_delta_seconds(value) if value is not None else None

    elif token == "max-stale":
        # max-stale without a value means any staleness is acceptable
        cc.max_stale = True if value is None else parse_delta_seconds(value)

    elif token == "no-cache":
        # the qualified form (no-cache="Set-Cookie") still forces validation
        cc.no_cache = True

    elif token == "private":
        cc.private = True

    elif token == "no-store" and value is None:
        cc.no_store = True

    elif token == "must-revalidate" and value is None:
        cc.must_revalidate = True

    elif token == "public" and value is None:
        cc.public = True

    else:
        cc.extensions.append(token if value is None else f"{token}={value}")


def parse(value: str) -> CacheControl:
    """
    Parse a Cache-Control header value character by character.

    Quoted values may contain commas, so a plain split on "," is not enough.
    Anything that does not form a directive is skipped.
    """
    cc = CacheControl()

    i = 0
    length = len(value)

    while i < length:
        while i < length and value[i] in (" ", "\t", ","):
            i += 1

        if i >= length:
            break

        j = i
        while j < length and is_token(value[j]):
            j += 1

        if j == i:
            i += 1
            continue

        token = value[i:j].lower()

        while j < length and value[j] in (" ", "\t"):
            j += 1

        if j >= length or value[j] != "=":
            handle_directive(cc, token, None)
            i = j
            continue

        k = j + 1
        while k < length and value[k] in (" ", "\t"):
            k += 1

        if k >= length:
            # "max-age=" with nothing after it
            break

        if value[k] == '"':
            eaten, result = http_unquote(value[k:])
            if eaten == -1:
                # unterminated quote, nothing after it can be trusted
                break
            i = k + eaten
        else:
            z = k
            while z < length and value[z] not in (" ", "\t", ","):
                z += 1
            result = value[k:z]
            i = z

        handle_directive(cc, token, result)

    return cc


def parse_cache_control(value: Optional[str]) -> CacheControl:
    """
    Parse a Cache-Control header from either a request or a response.

    Examples:
        >>> cc = parse_cache_control("max-age=30, must-revalidate")
        >>> cc.max_age
        30
        >>> cc.must_revalidate
        True

        >>> parse_cache_control("max-stale").max_stale
        True

        >>> # malformed values are treated as absent, never as zero
        >>> parse_cache_control("max-age=soon").max_age is None
        True
    """
    if not value:
        return CacheControl()
    return parse(value)
