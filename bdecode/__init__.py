__version__ = "0.1.0"

import sys
import json
import asyncio
import logging
import argparse

from typing import Optional, Sequence, Union

from tqdm import tqdm  # type: ignore[import]

from bdecode.bencode import BencodeDecodeError, Value, decode, loads
from bdecode.sources import DEFAULT_TIMEOUT, SourceReader, SourceReadError
from bdecode.utils import to_printable


__all__ = (
    "Value",
    "decode",
    "loads",
    "BencodeDecodeError",
    "main",
)

logger = logging.getLogger(__name__)

LOG_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PROGRESS_FMT = "{l_bar}{bar} [{n_fmt}/{total_fmt}]"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bdecode",
        description="Decode bencoded files or URLs and print them as JSON")
    parser.add_argument("inputs", nargs="+", metavar="INPUT",
                        help="path or http(s) URL of bencoded data")
    parser.add_argument("-s", "--strict", action="store_true",
                        help="require exactly one top-level value")
    parser.add_argument("-p", "--progress", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-t", "--timeout", type=float,
                        default=DEFAULT_TIMEOUT,
                        help="HTTP timeout in seconds")
    return parser.parse_args(argv)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FMT
    )

    async with SourceReader(args.timeout) as reader:
        results = await decode_all(
            reader,
            args.inputs,
            args.strict,
            args.progress
        )

    failed = 0
    for source, result in zip(args.inputs, results):
        if isinstance(result, Exception):
            failed += 1
            print(f"{source}: {result}", file=sys.stderr)
            continue
        try:
            rendered = [json.dumps(to_printable(value), indent=2)
                        for value in result]
        except (RecursionError, ValueError) as exc:
            failed += 1
            print(f"{source}: Can't render as JSON: {exc}", file=sys.stderr)
            continue
        for document in rendered:
            print(document)

    logger.debug("Decoded %d of %d input(s)",
                 len(args.inputs) - failed, len(args.inputs))
    return 1 if failed else 0


async def decode_all(
    reader: SourceReader,
    sources: Sequence[str],
    strict: bool,
    progress: bool
) -> list[Union[list[Value], Exception]]:
    with tqdm(total=len(sources),
              bar_format=PROGRESS_FMT,
              disable=not progress) as pbar:
        return await asyncio.gather(*(
            _decode_source(reader, source, strict, pbar)
            for source in sources
        ))


async def _decode_source(
    reader: SourceReader,
    source: str,
    strict: bool,
    pbar: tqdm
) -> Union[list[Value], Exception]:
    try:
        return await reader.decode(source, strict)
    except (SourceReadError, BencodeDecodeError) as exc:
        logger.debug("Failed to decode %s: %r", source, exc)
        return exc
    finally:
        pbar.update()
