"""Replica placement and transfer of chunks to and from storage nodes."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import requests

from chunkvault.chunking import Chunk

DEFAULT_SERVERS: tuple[str, ...] = (
    "http://localhost:4005",
    "http://localhost:4006",
    "http://localhost:4007",
)
REQUEST_TIMEOUT = 30
_STREAM_SIZE = 64 * 1024


def replica_nodes(index: int, servers: Sequence[str]) -> tuple[str, str]:
    """Return the primary and secondary node for the chunk at ``index``.

    The primary is ``servers[index % n]`` and the secondary the one after it.
    """
    if not servers:
        raise ValueError("at least one storage server is required")
    count = len(servers)
    return servers[index % count], servers[(index + 1) % count]


def build_node_info(servers: Sequence[str]) -> dict[int, tuple[str, str]]:
    """Map each chunk index, one per server, to its pair of replica nodes."""
    return {index: replica_nodes(index, servers) for index in range(len(servers))}


class StorageCluster:
    """A ring of storage nodes that each chunk is written to twice."""

    def __init__(self, servers: Iterable[str] = DEFAULT_SERVERS, download_dir="downloadedChunks") -> None:
        self.servers: tuple[str, ...] = tuple(servers)
        if not self.servers:
            raise ValueError("at least one storage server is required")
        self.download_dir = Path(download_dir)
        self.node_info = build_node_info(self.servers)

    def upload(self, chunks: Iterable[Chunk]) -> None:
        """Send every chunk to its primary and then its secondary node.

        Stops at, and raises, the first failed transfer.
        """
        for index, chunk in enumerate(chunks):
            for node in replica_nodes(index, self.servers):
                self.send_chunk(node, chunk)

    def send_chunk(self, node_uri: str, chunk: Chunk) -> None:
        """Post ``chunk`` as the multipart field ``file`` to ``node_uri``."""
        with open(chunk.path, "rb") as body:
            response = requests.post(
                f"{node_uri}/file/upload",
                files={"file": (chunk.name, body)},
                timeout=REQUEST_TIMEOUT,
            )
        with response:
            response.raise_for_status()

    def fetch_chunk(self, node_uri: str, file_name: str) -> Chunk:
        """Download ``file_name`` from ``node_uri`` into the download directory."""
        self.download_dir.mkdir(parents=True, exist_ok=True)
        save_path = self.download_dir / Path(file_name).name
        with requests.get(
            f"{node_uri}/getFile",
            params={"name": file_name},
            stream=True,
            timeout=REQUEST_TIMEOUT,
        ) as response:
            response.raise_for_status()
            with open(save_path, "wb") as target:
                for block in response.iter_content(_STREAM_SIZE):
                    target.write(block)
        return Chunk(name=file_name, path=save_path)

    def fetch(self, original_name: str) -> list[Chunk]:
        """Download every encrypted part of ``original_name`` in order.

        Each part is read from its primary node, falling back to the secondary;
        the secondary's error is raised if both fail.
        """
        parts: list[Chunk] = []
        for index in range(len(self.servers)):
            part_name = f"{original_name}.enc.part{index + 1}"
            primary, secondary = self.node_info[index]
            try:
                chunk = self.fetch_chunk(primary, part_name)
            except (requests.RequestException, OSError):
                chunk = self.fetch_chunk(secondary, part_name)
            parts.append(chunk)
        return parts