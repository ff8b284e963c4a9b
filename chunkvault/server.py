"""HTTP front end that encrypts, splits and replicates uploaded files."""

from __future__ import annotations

import argparse
import logging
import secrets
import shutil
from pathlib import Path

import requests
from flask import Flask, Response, jsonify, request

from chunkvault.chunking import join_chunks, split_file
from chunkvault.encryption import decrypt_stream, encrypt_file, generate_key
from chunkvault.filestore import FileStore
from chunkvault.nodes import DEFAULT_SERVERS, StorageCluster

PARTS = 3
DEFAULT_PORT = 8082

log = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({"message": message}), status


def _decode_key(key: str) -> bytes | None:
    try:
        return bytes.fromhex(key)
    except (TypeError, ValueError):
        return None


def create_app(cluster, key: str, store: FileStore | None = None, work_dir=".") -> Flask:
    """Build the application around a storage cluster and a hex-encoded AES key."""
    app = Flask(__name__)
    files = store if store is not None else FileStore()
    uploads_root = Path(work_dir) / "uploads"

    @app.post("/api/fileUpload")
    def file_upload():
        user_id = request.form.get("userID", "")
        upload = request.files.get("file")
        file_name = Path(upload.filename or "").name if upload is not None else ""
        if upload is None or not file_name:
            return _error("failed to read file", 400)

        token = secrets.token_hex(8)
        upload_dir = uploads_root / token
        try:
            upload_dir.mkdir(parents=True, exist_ok=True)
            plain_path = upload_dir / f"{file_name}_{token}"
            try:
                upload.save(plain_path)
            except OSError:
                return _error("failed to save file to temp", 500)

            key_bytes = _decode_key(key)
            if key_bytes is None:
                return _error("Internal Server Error", 400)

            encrypted_path = upload_dir / f"{file_name}.enc"
            try:
                encrypt_file(key_bytes, plain_path, encrypted_path)
            except (OSError, ValueError):
                return _error("encryption failed", 500)
            plain_path.unlink(missing_ok=True)

            try:
                chunks = split_file(encrypted_path, PARTS, upload_dir / "parts")
            except (OSError, ValueError):
                return _error("file splitting failed", 500)

            try:
                cluster.upload(chunks)
            except (requests.RequestException, OSError) as exc:
                log.warning("replicating %s failed: %s", file_name, exc)

            files.add_file(user_id, file_name)
        finally:
            shutil.rmtree(upload_dir, ignore_errors=True)

        return jsonify(
            {
                "message": "file uploaded, encrypted and split successfully",
                "key": key,
            }
        ), 200

    @app.post("/api/getFiles")
    def get_files():
        user_id = request.form.get("userID", "")
        file_name = request.form.get("fileName", "")
        if not files.has_file(user_id, file_name):
            return _error("no file found!!!", 400)

        try:
            chunks = cluster.fetch(file_name)
        except (requests.RequestException, OSError):
            return _error("Internal server error!!!", 400)

        try:
            combined = join_chunks(chunks, Path(f"{user_id}_{file_name}_").name)
        except OSError as exc:
            return _error(str(exc), 400)
        finally:
            for chunk in chunks:
                Path(chunk.path).unlink(missing_ok=True)

        try:
            key_bytes = _decode_key(key)
            if key_bytes is None:
                return _error("Internal Server Error", 400)
            try:
                with open(combined.path, "rb") as reader, decrypt_stream(key_bytes, reader) as plain:
                    data = plain.read()
            except (OSError, ValueError):
                return _error("internal server error", 400)
        finally:
            combined.path.unlink(missing_ok=True)

        return Response(
            data,
            status=200,
            mimetype="application/octet-stream",
            headers={"Content-Disposition": f'attachment; filename="{Path(file_name).name}"'},
        )

    return app


def main(argv=None) -> None:
    """Run the upload node."""
    parser = argparse.ArgumentParser(description="Encrypting, chunk-replicating upload node.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--work-dir", default=".")
    parser.add_argument("--download-dir", default="downloadedChunks")
    parser.add_argument(
        "--server",
        dest="servers",
        action="append",
        help="storage node base URL; may be given several times",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    cluster = StorageCluster(args.servers or DEFAULT_SERVERS, args.download_dir)
    app = create_app(cluster, generate_key(), FileStore(), args.work_dir)
    app.run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()