"""Reading FASTA and FASTQ records, plain or gzip-compressed."""

from __future__ import annotations

import gzip
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO, Union

_HEADER_START = re.compile(r"[>@]")
_WHITESPACE = re.compile(r"[ \t\n\v\f\r]")
_GZIP_MAGIC = b"\x1f\x8b"


class SequenceFormatError(ValueError):
    """Raised when a FASTQ record has a missing or mis-sized quality string."""


@dataclass(frozen=True)
class SequenceRecord:
    """One FASTA/FASTQ record; ``quality`` is None for FASTA."""

    name: str
    comment: str = ""
    sequence: str = ""
    quality: str | None = None

    def __len__(self) -> int:
        return len(self.sequence)


def _read_line(data: str, pos: int) -> tuple[str, int]:
    end = data.find("\n", pos)
    if end < 0:
        return data[pos:], len(data)
    return data[pos:end], end + 1


def _strip_cr(piece: str, before: int) -> str:
    """Drop a trailing carriage return if the accumulated text exceeds one char."""
    if before + len(piece) > 1 and piece.endswith("\r"):
        return piece[:-1]
    return piece


def _parse_text(data: str) -> Iterator[SequenceRecord]:
    n = len(data)
    pos = 0
    header_pending = False

    while True:
        if not header_pending:
            found = _HEADER_START.search(data, pos)
            if found is None:
                return
            pos = found.end()
        if pos >= n:
            return

        space = _WHITESPACE.search(data, pos)
        if space is None:
            name, delimiter, pos = data[pos:], "", n
        else:
            name, delimiter, pos = data[pos : space.start()], space.group(), space.end()

        comment = ""
        if delimiter != "\n" and pos < n:
            line, pos = _read_line(data, pos)
            comment = _strip_cr(line, 0)

        parts: list[str] = []
        length = 0
        marker = ""
        while pos < n:
            char = data[pos]
            pos += 1
            if char in ">+@":
                marker = char
                break
            if char == "\n":
                continue
            if pos < n:
                rest, pos = _read_line(data, pos)
                piece = _strip_cr(char + rest, length)
            else:
                piece = char
            parts.append(piece)
            length += len(piece)
        sequence = "".join(parts)

        if marker != "+":
            header_pending = marker in (">", "@")
            yield SequenceRecord(name, comment, sequence)
            continue

        newline = data.find("\n", pos)
        if newline < 0:
            raise SequenceFormatError(f"record {name!r} has no quality string")
        pos = newline + 1

        qual_parts: list[str] = []
        qual_length = 0
        while pos < n:
            line, pos = _read_line(data, pos)
            piece = _strip_cr(line, qual_length)
            qual_parts.append(piece)
            qual_length += len(piece)
            if qual_length >= length:
                break

        header_pending = False
        if qual_length != length:
            raise SequenceFormatError(
                f"record {name!r}: quality length {qual_length} "
                f"differs from sequence length {length}"
            )
        yield SequenceRecord(name, comment, sequence, "".join(qual_parts))


def parse_sequences(stream: IO) -> Iterator[SequenceRecord]:
    """Yield records from an open text or binary stream."""
    data = stream.read()
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("latin-1")
    yield from _parse_text(data)


def read_sequences(path: Union[str, os.PathLike]) -> Iterator[SequenceRecord]:
    """Yield records from a FASTA/FASTQ file, decompressing gzip transparently."""
    with open(path, "rb") as handle:
        raw = handle.read()
    if raw[:2] == _GZIP_MAGIC:
        raw = gzip.decompress(raw)
    yield from _parse_text(raw.decode("latin-1"))