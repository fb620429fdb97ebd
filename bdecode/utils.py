from typing import Union
from urllib.parse import urlparse

from bdecode.bencode import Value


Printable = Union[dict, list, str, int]

URL_SCHEMES = ("http", "https")


def is_url(source: str) -> bool:
    try:
        parsed = urlparse(source)
        return parsed.scheme in URL_SCHEMES and bool(parsed.netloc)
    except ValueError:
        return False


def printable_bytes(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return f"0x{raw.hex()}"


def to_printable(value: Value) -> Printable:
    """Turn a decoded value into something ``json.dumps`` accepts.

    Byte strings become text when they are valid UTF-8 and a ``0x`` hex
    string otherwise, so binary fields such as ``pieces`` stay readable.
    Nested containers are walked with an explicit stack, like the decoder
    builds them.
    """
    result = _convert(value)
    pending = [(value, result)]
    while pending:
        source, target = pending.pop()
        if isinstance(source, dict):
            for key, item in source.items():
                converted = _convert(item)
                target[printable_bytes(key)] = converted
                if isinstance(item, (dict, list)):
                    pending.append((item, converted))
        elif isinstance(source, list):
            for item in source:
                converted = _convert(item)
                target.append(converted)
                if isinstance(item, (dict, list)):
                    pending.append((item, converted))
    return result


def _convert(value: Value) -> Printable:
    # containers come back empty and are filled by to_printable
    if isinstance(value, dict):
        return {}
    elif isinstance(value, list):
        return []
    elif isinstance(value, bytes):
        return printable_bytes(value)
    elif isinstance(value, int):
        return value
    else:
        raise TypeError(
            f"Object of type {type(value).__name__} is not a bencode value")
