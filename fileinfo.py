"""
Stat, hash and describe the single file being served.

Everything here runs once at startup; the server only hands out the values
collected in a FileInfo.
"""
import hashlib
import os
import stat
from collections import namedtuple

CHUNK_SIZE = 65536

UNITS = 'KMGTPE'

class FileInfoError(Exception):
    """The file can't be found, isn't a regular file, or can't be read."""
    pass

FileInfo = namedtuple('FileInfo', ['path', 'name', 'size', 'sha256'])

def format_bytes(n):
    """
    Pretty-prints a byte count with base-1024 units, e.g. 1536 -> "1.5 KB".
    Counts below 1024 are printed as whole bytes.
    """
    if n < 0:
        raise ValueError(f'byte count must be non-negative: {n}')
    if n < 1024:
        return f'{n} B'
    div, exp = 1024, 0
    q = n // 1024
    while q >= 1024 and exp < len(UNITS) - 1:
        div *= 1024
        exp += 1
        q //= 1024
    return f'{n / div:.1f} {UNITS[exp]}B'

def _open(path):
    try:
        return open(path, 'rb')
    except OSError as e:
        raise FileInfoError(f"can't open file: {e}") from e

def _digest(f, chunk_size):
    """Hashes f to the end. Returns the hex digest and the byte count read."""
    h = hashlib.sha256()
    size = 0
    try:
        while chunk := f.read(chunk_size):
            h.update(chunk)
            size += len(chunk)
    except OSError as e:
        raise FileInfoError(f"can't hash file: {e}") from e
    return h.hexdigest(), size

def hash_file(path, chunk_size=CHUNK_SIZE):
    """Returns the hex SHA-256 digest of the file at path."""
    with _open(path) as f:
        return _digest(f, chunk_size)[0]

def display_name(path):
    """Last component of path, split on the platform's separators."""
    return os.path.basename(path)

def file_info(path):
    """
    Stats and hashes the file at path. Raises FileInfoError if it's missing,
    not a regular file, or unreadable.
    """
    try:
        st = os.stat(path)
    except OSError as e:
        raise FileInfoError(f'file not found: {e}') from e
    if not stat.S_ISREG(st.st_mode):
        raise FileInfoError(f'not a regular file: {path}')
    # size is what was hashed, not what stat saw, in case the file changes
    with _open(path) as f:
        sha256, size = _digest(f, CHUNK_SIZE)
    # absolute, so serving doesn't depend on the working directory
    return FileInfo(os.path.abspath(path), display_name(path), size, sha256)
