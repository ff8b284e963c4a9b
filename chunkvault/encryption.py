"""AES-CTR file encryption with the IV stored in front of the ciphertext."""

from __future__ import annotations

import os
import tempfile
from typing import BinaryIO

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

BLOCK_SIZE = 16
KEY_SIZE = 32
_COPY_SIZE = 64 * 1024


def generate_key() -> str:
    """Return a fresh random 256-bit key, hex encoded."""
    return os.urandom(KEY_SIZE).hex()


def _ctr(key: bytes, iv: bytes):
    return Cipher(algorithms.AES(key), modes.CTR(iv))


def encrypt_file(key: bytes, input_path, output_path) -> None:
    """Encrypt ``input_path`` into ``output_path`` as IV followed by ciphertext.

    Raises ``ValueError`` if the key is not a valid AES key length.
    """
    with open(input_path, "rb") as source, open(output_path, "wb") as target:
        iv = os.urandom(BLOCK_SIZE)
        encryptor = _ctr(key, iv).encryptor()
        target.write(iv)
        while block := source.read(_COPY_SIZE):
            target.write(encryptor.update(block))
        target.write(encryptor.finalize())


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        piece = reader.read(size - len(data))
        if not piece:
            break
        data.extend(piece)
    return bytes(data)


def decrypt_stream(key: bytes, reader: BinaryIO) -> BinaryIO:
    """Decrypt an IV-prefixed stream into a temporary file positioned at its start.

    Raises ``ValueError`` for an invalid key or a stream shorter than the IV.
    """
    cipher_spec = algorithms.AES(key)
    iv = _read_exact(reader, BLOCK_SIZE)
    if len(iv) < BLOCK_SIZE:
        raise ValueError("encrypted stream is too short to hold an IV")
    decryptor = Cipher(cipher_spec, modes.CTR(iv)).decryptor()

    output = tempfile.TemporaryFile(prefix="decrypted_")
    try:
        while block := reader.read(_COPY_SIZE):
            output.write(decryptor.update(block))
        output.write(decryptor.finalize())
        output.seek(0)
    except BaseException:
        output.close()
        raise
    return output