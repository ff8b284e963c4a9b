# chunkvault

chunkvault is a small front node for a replicated file store. It accepts file
uploads over HTTP and encrypts each file with AES-256 in CTR mode. A random IV
is written at the head of the ciphertext. The ciphertext is split into three
chunks, and every chunk is sent to two storage nodes. When a file is requested,
the node fetches the chunks, joins them and decrypts the result. For each chunk
it tries the second replica when the first node fails.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running a node

```
chunkvault-node
```

This starts the front node on `0.0.0.0:8082` with a freshly generated
encryption key. Options:

| Option             | Default              | Meaning                                                    |
|--------------------|----------------------|------------------------------------------------------------|
| `--host`           | `0.0.0.0`            | Address to listen on                                       |
| `--port`           | `8082`               | Port to listen on                                          |
| `--work-dir`       | `.`                  | Directory under which uploads are staged (`uploads/`)      |
| `--download-dir`   | `downloadedChunks`   | Directory that fetched chunks are saved to                 |
| `--server URL`     | see below            | Storage node base URL; give it several times for several   |

Without `--server`, the node uses `http://localhost:4005`,
`http://localhost:4006` and `http://localhost:4007`.

### HTTP interface

`POST /api/fileUpload` takes the form fields `userID` and `file`. The node saves
the upload to a staging directory and encrypts it. It splits the ciphertext
into three parts and sends each part to its two replica nodes. It then records
the file under the user and deletes the staging directory. On success it
answers 200 with JSON:
`{"message": "file uploaded, encrypted and split successfully", "key": "<hex key>"}`.
A missing file gives 400 `failed to read file`. If sending the chunks to the
storage nodes fails, the node logs a warning and still records the file.

`POST /api/getFiles` takes the form fields `userID` and `fileName`. If that user
has not uploaded that file, the node answers 400 `no file found!!!`. Otherwise
it fetches each part, joins the parts and decrypts them. It returns the
plaintext as `application/octet-stream` with a `Content-Disposition:
attachment` header. A failed fetch or decryption answers 400 with a JSON
`message`.

### Storage node protocol

Chunk `i` (counting from zero) goes to server `i mod n` and then to server
`(i + 1) mod n`, where `n` is the number of servers. The storage nodes must
accept multipart uploads on `POST /file/upload` under the field `file`. They
must serve stored chunks from `GET /getFile?name=<chunk name>`. Chunk names
have the form `<file>.enc.part1`, `<file>.enc.part2` and so on. When fetching,
the node asks for one part per configured server.

## Using the pieces as a library

```python
from chunkvault.filestore import FileStore
from chunkvault.encryption import generate_key, encrypt_file, decrypt_stream
from chunkvault.chunking import split_file, join_chunks

store = FileStore()
store.add_file("alice", "report.pdf")
assert store.has_file("alice", "report.pdf")

key = bytes.fromhex(generate_key())        # 32 random bytes
encrypt_file(key, "report.pdf", "report.pdf.enc")

chunks = split_file("report.pdf.enc", 3, "parts")   # parts/report.pdf.enc.part1 ...
combined = join_chunks(chunks, "alice_report.pdf_")  # Chunk with a temporary file path

with open(combined.path, "rb") as reader, decrypt_stream(key, reader) as plain:
    data = plain.read()
```

- `split_file(file_path, parts, out_dir)` writes `parts` files. Each part except
  the last holds `size // parts` bytes, and the last part holds the rest. It
  returns a list of `Chunk(name, path)`.
- `join_chunks(chunks, prefix)` concatenates the chunks in order into a new
  temporary file. It returns a `Chunk` named `combined_file`.
- `decrypt_stream(key, reader)` reads the IV from the head of the stream. It
  returns a temporary file that holds the plaintext and is positioned at its
  start. It raises `ValueError` for an invalid key or for a stream shorter than
  the IV.

`chunkvault.nodes` handles replica placement and transfers.
`replica_nodes(index, servers)` gives the primary and secondary node for a
chunk. `build_node_info(servers)` maps each chunk index to its pair of nodes.
`StorageCluster(servers, download_dir)` offers `upload(chunks)`,
`send_chunk(node_uri, chunk)`, `fetch_chunk(node_uri, file_name)` and
`fetch(original_name)`.

`chunkvault.server.create_app(cluster, key, store, work_dir)` builds the Flask
application that `chunkvault-node` runs.

## What it does not do

- It does not include a storage node. The servers that chunks are sent to must
  be run separately and speak the protocol above.
- The record of which user owns which file is kept in memory only. It is lost
  when the node stops.
- The encryption key is generated at start-up and is not saved. Files uploaded
  before a restart cannot be decrypted afterwards.
- There is no authentication. Any caller who knows a `userID` and file name can
  fetch the file.