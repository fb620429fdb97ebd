from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Union


__all__ = (
    "Value",
    "decode",
    "loads",
    "decode_int",
    "decode_string",
    "ScopeKind",
    "Scope",
    "BencodeDecoder",
    "BencodeDecodeError",
    "DuplicateStartToken",
    "InvalidToken",
    "InvalidLength",
    "ByteStrEOF",
    "NoEndToken",
    "NoStartToken",
    "InvalidEndToken",
    "InvalidDict",
    "Empty",
    "LeadingZero",
    "IntegerOverflow",
)


Value = Union[dict, list, bytes, int]

INT_MAX = 2 ** 63 - 1


def decode(data: bytes) -> list[Value]:
    """Decode every top-level value in ``data``."""
    return BencodeDecoder(data).decode()


def loads(data: bytes) -> Value:
    """Decode ``data`` that holds exactly one top-level value."""
    return BencodeDecoder(data, single_root=True).decode()[0]


def _char(ch: bytes) -> str:
    return ch.decode("latin-1")


def decode_int(data: bytes, pos: int) -> tuple[int, int]:
    """Decode ``i<digits>e`` starting at ``pos``.

    Returns the integer and the number of bytes consumed, both sigils
    included. The value must fit a signed 64-bit integer.
    """
    if data[pos: pos + 1] != b"i":
        raise NoStartToken(pos)

    cur_pos = pos + 1
    negative = False
    digits = 0
    magnitude = 0
    limit = INT_MAX

    while cur_pos < len(data):
        ch = data[cur_pos: cur_pos + 1]
        if ch.isdigit():
            if digits == 1 and magnitude == 0:
                raise LeadingZero(cur_pos)
            magnitude = magnitude * 10 + int(ch)
            if magnitude > limit:
                raise IntegerOverflow(cur_pos)
            digits += 1
        elif ch == b"-":
            if negative or digits:
                raise InvalidToken(cur_pos, "-")
            negative = True
            limit = INT_MAX + 1
        elif ch == b"i":
            raise DuplicateStartToken(cur_pos)
        elif ch == b"e":
            if not digits:
                raise Empty(cur_pos)
            value = -magnitude if negative else magnitude
            return value, cur_pos + 1 - pos
        else:
            raise InvalidToken(cur_pos, _char(ch))
        cur_pos += 1

    raise NoEndToken(cur_pos)


def decode_string(data: bytes, pos: int) -> tuple[bytes, int]:
    """Decode ``<len>:<bytes>`` starting at the first length digit.

    Returns the payload and the number of bytes consumed, length prefix
    and colon included.
    """
    if not data[pos: pos + 1].isdigit():
        raise NoStartToken(pos)

    cur_pos = pos
    length = 0

    while cur_pos < len(data):
        ch = data[cur_pos: cur_pos + 1]
        if ch == b":":
            break
        if not ch.isdigit():
            raise InvalidToken(cur_pos, _char(ch))
        if cur_pos == pos + 1 and length == 0:
            raise LeadingZero(cur_pos)
        length = length * 10 + int(ch)
        cur_pos += 1
    else:
        raise InvalidLength(cur_pos)

    begin = cur_pos + 1
    end = begin + length
    if end > len(data):
        raise ByteStrEOF(begin)
    return data[begin:end], end - pos


class ScopeKind(Enum):
    ROOT = auto()
    LIST = auto()
    DICT = auto()


@dataclass
class Scope:
    kind: ScopeKind
    items: list[Value] = field(default_factory=list)

    def fold(self, pos: int) -> Value:
        # pos is the offset of the closing sigil
        if self.kind is ScopeKind.LIST:
            return self.items

        if len(self.items) % 2:
            raise InvalidDict(pos)
        bdict = {}
        for key, value in zip(self.items[::2], self.items[1::2]):
            if not isinstance(key, bytes):
                raise InvalidDict(pos)
            bdict[key] = value
        return bdict


class BencodeDecoder:
    """Single pass decoder over an in-memory buffer.

    Nested lists and dicts are tracked on an explicit stack of scopes, so
    nesting depth is not bounded by the interpreter's recursion limit.
    With ``single_root`` the buffer must hold exactly one top-level value.
    """

    def __init__(self, data: bytes, single_root: bool = False) -> None:
        self._data = bytes(data)
        self._single_root = single_root
        self._cur_pos = 0
        self._stack: list[Scope] = []

    def decode(self) -> list[Value]:
        self._cur_pos = 0
        self._stack = [Scope(ScopeKind.ROOT)]

        while self._cur_pos < len(self._data):
            self._step()

        if len(self._stack) > 1:
            raise NoEndToken(self._cur_pos)
        root = self._stack.pop()
        if self._single_root and not root.items:
            raise NoStartToken(0)
        return root.items

    @property
    def _cur_ch(self) -> bytes:
        return self._data[self._cur_pos: self._cur_pos + 1]

    @property
    def _top(self) -> Scope:
        return self._stack[-1]

    @property
    def _root_is_full(self) -> bool:
        return (self._single_root
                and len(self._stack) == 1
                and bool(self._top.items))

    def _step(self) -> None:
        if self._cur_ch != b"e" and self._root_is_full:
            raise InvalidToken(self._cur_pos, _char(self._cur_ch))

        if self._cur_ch == b"i":
            self._push_value(decode_int)
        elif self._cur_ch.isdigit():
            self._push_value(decode_string)
        elif self._cur_ch == b"l":
            self._open_scope(ScopeKind.LIST)
        elif self._cur_ch == b"d":
            self._open_scope(ScopeKind.DICT)
        elif self._cur_ch == b"e":
            self._close_scope()
        else:
            raise InvalidToken(self._cur_pos, _char(self._cur_ch))

    def _push_value(self, leaf_decoder) -> None:
        value, consumed = leaf_decoder(self._data, self._cur_pos)
        self._top.items.append(value)
        self._cur_pos += consumed

    def _open_scope(self, kind: ScopeKind) -> None:
        self._stack.append(Scope(kind))
        self._cur_pos += 1

    def _close_scope(self) -> None:
        if len(self._stack) == 1:
            raise InvalidEndToken(self._cur_pos)
        value = self._stack.pop().fold(self._cur_pos)
        self._top.items.append(value)
        self._cur_pos += 1


class BencodeDecodeError(ValueError):
    description = "Invalid bencode"

    def __init__(self, pos: int) -> None:
        super().__init__(pos)
        self.pos = pos

    def __str__(self) -> str:
        return f"{self.description} on position {self.pos}"


class DuplicateStartToken(BencodeDecodeError):
    description = "Duplicate start token"


class InvalidToken(BencodeDecodeError):
    description = "Invalid character"

    def __init__(self, pos: int, char: str) -> None:
        super().__init__(pos)
        self.args = (pos, char)
        self.char = char

    def __str__(self) -> str:
        return f"{self.description} {self.char!r} on position {self.pos}"


class InvalidLength(BencodeDecodeError):
    description = "Unterminated string length"


class ByteStrEOF(BencodeDecodeError):
    description = "String payload exceeds input"


class NoEndToken(BencodeDecodeError):
    description = "Missing end token"


class NoStartToken(BencodeDecodeError):
    description = "Missing start token"


class InvalidEndToken(BencodeDecodeError):
    description = "Unexpected end token"


class InvalidDict(BencodeDecodeError):
    description = "Invalid dictionary"


class Empty(BencodeDecodeError):
    description = "Integer without digits"


class LeadingZero(BencodeDecodeError):
    description = "Leading zero"


class IntegerOverflow(BencodeDecodeError):
    description = "Integer out of 64-bit range"
