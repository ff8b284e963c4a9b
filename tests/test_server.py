import io
from pathlib import Path

import pytest
import requests

from chunkvault.chunking import Chunk
from chunkvault.encryption import generate_key
from chunkvault.filestore import FileStore
from chunkvault.server import PARTS, create_app


class FakeCluster:
    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)
        self.stored: dict[str, bytes] = {}
        self.fail_fetch = False

    def upload(self, chunks):
        for chunk in chunks:
            self.stored[chunk.name] = Path(chunk.path).read_bytes()

    def fetch(self, original_name):
        if self.fail_fetch:
            raise requests.ConnectionError("down")
        result = []
        for number in range(1, PARTS + 1):
            name = f"{original_name}.enc.part{number}"
            path = self.directory / name
            path.write_bytes(self.stored[name])
            result.append(Chunk(name=name, path=path))
        return result


@pytest.fixture
def env(tmp_path):
    cluster = FakeCluster(tmp_path / "nodes")
    store = FileStore()
    key = generate_key()
    app = create_app(cluster, key, store, tmp_path / "work")
    return app.test_client(), cluster, store, key, tmp_path


def _upload(client, content=b"hello distributed world", name="hello.txt", user="alice"):
    return client.post(
        "/api/fileUpload",
        data={"userID": user, "file": (io.BytesIO(content), name)},
        content_type="multipart/form-data",
    )


def test_upload_reports_success_and_key(env):
    client, cluster, store, key, _ = env
    response = _upload(client)
    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "file uploaded, encrypted and split successfully"
    assert body["key"] == key
    assert store.has_file("alice", "hello.txt")


def test_upload_stores_encrypted_parts(env):
    client, cluster, _, _, _ = env
    content = b"hello distributed world" * 10
    _upload(client, content)
    assert sorted(cluster.stored) == [f"hello.txt.enc.part{n}" for n in range(1, PARTS + 1)]
    joined = b"".join(cluster.stored[f"hello.txt.enc.part{n}"] for n in range(1, PARTS + 1))
    assert len(joined) == len(content) + 16
    assert content not in joined


def test_upload_cleans_work_dir(env):
    client, _, _, _, tmp_path = env
    _upload(client)
    assert list((tmp_path / "work" / "uploads").iterdir()) == []


def test_upload_without_file(env):
    client, _, store, _, _ = env
    response = client.post("/api/fileUpload", data={"userID": "alice"})
    assert response.status_code == 400
    assert response.get_json() == {"message": "failed to read file"}
    assert not store.has_file("alice", "")


def test_upload_with_bad_key(tmp_path):
    store = FileStore()
    client = create_app(FakeCluster(tmp_path / "nodes"), "placeholder", store, tmp_path).test_client()
    response = _upload(client)
    assert response.status_code == 400
    assert response.get_json() == {"message": "Internal Server Error"}
    assert not store.has_file("alice", "hello.txt")


def test_round_trip(env):
    client, _, _, _, _ = env
    content = bytes(range(256)) * 40
    _upload(client, content, name="data.bin", user="bob")
    response = client.post("/api/getFiles", data={"userID": "bob", "fileName": "data.bin"})
    assert response.status_code == 200
    assert response.data == content


def test_round_trip_removes_fetched_chunks(env):
    client, cluster, _, _, _ = env
    _upload(client)
    client.post("/api/getFiles", data={"userID": "alice", "fileName": "hello.txt"})
    assert list(cluster.directory.iterdir()) == []


def test_get_unknown_file(env):
    client, _, _, _, _ = env
    response = client.post("/api/getFiles", data={"userID": "alice", "fileName": "missing.txt"})
    assert response.status_code == 400
    assert response.get_json() == {"message": "no file found!!!"}


def test_get_other_users_file(env):
    client, _, _, _, _ = env
    _upload(client, user="alice")
    response = client.post("/api/getFiles", data={"userID": "mallory", "fileName": "hello.txt"})
    assert response.status_code == 400
    assert response.get_json() == {"message": "no file found!!!"}


def test_get_when_nodes_fail(env):
    client, cluster, _, _, _ = env
    _upload(client)
    cluster.fail_fetch = True
    response = client.post("/api/getFiles", data={"userID": "alice", "fileName": "hello.txt"})
    assert response.status_code == 400
    assert response.get_json() == {"message": "Internal server error!!!"}