"""Splitting files into numbered parts and joining parts back together."""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable

_COPY_SIZE = 64 * 1024


@dataclass(frozen=True)
class Chunk:
    """A named piece of data stored in a file on disk."""

    name: str
    path: Path


def _copy_n(source: BinaryIO, target: BinaryIO, count: int) -> None:
    remaining = count
    while remaining > 0:
        block = source.read(min(remaining, _COPY_SIZE))
        if not block:
            break
        target.write(block)
        remaining -= len(block)


def split_file(file_path, parts: int, out_dir) -> list[Chunk]:
    """Split ``file_path`` into ``parts`` files named ``<base>.partN`` in ``out_dir``.

    Every part but the last holds ``size // parts`` bytes; the last holds the rest.
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")
    source_path = Path(file_path)
    target_dir = Path(out_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    chunks: list[Chunk] = []
    with open(source_path, "rb") as source:
        chunk_size = os.fstat(source.fileno()).st_size // parts
        for number in range(1, parts + 1):
            name = f"{source_path.name}.part{number}"
            part_path = target_dir / name
            with open(part_path, "wb") as target:
                if number == parts:
                    shutil.copyfileobj(source, target)
                else:
                    _copy_n(source, target, chunk_size)
            chunks.append(Chunk(name=name, path=part_path))
    return chunks


def join_chunks(chunks: Iterable[Chunk], prefix: str) -> Chunk:
    """Concatenate ``chunks`` in order into a new temporary file starting with ``prefix``."""
    fd, combined = tempfile.mkstemp(prefix=prefix)
    try:
        with os.fdopen(fd, "wb") as target:
            for chunk in chunks:
                with open(chunk.path, "rb") as source:
                    shutil.copyfileobj(source, target)
    except BaseException:
        os.unlink(combined)
        raise
    return Chunk(name="combined_file", path=Path(combined))