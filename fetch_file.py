"""
usage: fetch_file.py [-o DIR] [--sha256 HASH] url

Downloads the file offered by a serve_file.py server at url and checks it
against the SHA-256 hash on the server's landing page (or against HASH, if
given, which is the safer choice when the hash was obtained out of band).

The file is saved into DIR (default: current directory) under the name shown
on the landing page, made safe for the local filesystem. Nothing is written
under that name unless the hash matches.
"""
import argparse
import hashlib
import html
import os
import re
import sys
import tempfile
from collections import namedtuple

import httpx
from werkzeug.utils import secure_filename

import utils

CHUNK_SIZE = 65536
TIMEOUT = 30.0

SHA256_RE = re.compile(r'^[0-9a-fA-F]{64}$')

class FetchError(Exception):
    """Error occurred fetching the file from the server."""
    pass

class IntegrityError(FetchError):
    """The downloaded file doesn't match the expected hash."""
    pass

RemoteFile = namedtuple('RemoteFile', ['name', 'size', 'sha256'])

EVENT_HOOKS = {'response': [utils.httpx_raise_on_err(FetchError)]}

def _page_value(page, element_id):
    """Extracts the text of the element with the given id from the page."""
    m = re.search(rf'id="{element_id}">([^<]*)<', page)
    if not m:
        raise FetchError(f'"{element_id}" not found on landing page')
    return html.unescape(m.group(1))

def read_landing_page(h):
    """
    Reads the filename, size, and hash from the landing page. h is an
    httpx.Client with the server as its base_url.
    """
    page = h.get('/').text
    name = _page_value(page, 'filename')
    size = _page_value(page, 'size')
    sha256 = _page_value(page, 'sha256')
    if not SHA256_RE.match(sha256):
        raise FetchError(f'landing page has a malformed hash: {sha256!r}')
    return RemoteFile(name, size, sha256.lower())

def download(h, f):
    """
    Streams the file into f, an open binary file, hashing it on the way.
    Returns the hex digest.
    """
    sha = hashlib.sha256()
    try:
        with h.stream('GET', '/file') as r:
            for chunk in r.iter_bytes(CHUNK_SIZE):
                sha.update(chunk)
                f.write(chunk)
    except httpx.HTTPError as e:
        raise FetchError(f'download failed: {e}') from e
    except OSError as e:
        raise FetchError(f"can't write {f.name}: {e}") from e
    return sha.hexdigest()

def _remove(path):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass

def fetch(url, dest_dir='.', expected_hash=None, transport=None):
    """
    Downloads the file served at url into dest_dir and verifies its SHA-256
    against expected_hash, or the landing page's hash if that's None. Returns
    the path of the saved file. Raises IntegrityError on mismatch.

    The download goes to a temporary file next to the destination and is only
    renamed into place once the hash matches, so an existing file with the
    same name is left alone unless the new one verifies.
    """
    if expected_hash is not None and not SHA256_RE.match(expected_hash):
        raise FetchError(f'not a SHA-256 hash: {expected_hash!r}')

    with httpx.Client(base_url=url, event_hooks=EVENT_HOOKS,
                      transport=transport, timeout=TIMEOUT) as h:
        try:
            remote = read_landing_page(h)
        except httpx.HTTPError as e:
            raise FetchError(f"can't reach server: {e}") from e
        name = secure_filename(remote.name)
        if not name:
            raise FetchError(f'unusable filename: {remote.name!r}')
        dest_path = os.path.join(dest_dir, name)
        expected = (expected_hash or remote.sha256).lower()

        try:
            f = tempfile.NamedTemporaryFile(dir=dest_dir, prefix=f'.{name}.',
                                            suffix='.part', delete=False)
        except OSError as e:
            raise FetchError(f"can't write {dest_path}: {e}") from e
        print(f'[*] Downloading {name} ({remote.size})...')
        try:
            with f:
                actual = download(h, f)
            if actual != expected:
                raise IntegrityError(f'hash mismatch for {name}: expected '
                                     f'{expected}, got {actual}')
            try:
                os.replace(f.name, dest_path)
            except OSError as e:
                raise FetchError(f"can't write {dest_path}: {e}") from e
        except BaseException:
            _remove(f.name)
            raise
    return dest_path

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='fetch_file.py',
        description='Download a file from serve_file.py and verify its hash.')
    parser.add_argument('url', help='server address, e.g. http://host:8080/')
    parser.add_argument('-o', '--output-dir', default='.',
                        help='directory to save into (default: .)')
    parser.add_argument('--sha256', dest='expected_hash',
                        help='expected hash (default: read from the server)')
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    try:
        path = fetch(args.url, args.output_dir, args.expected_hash)
    except IntegrityError as e:
        sys.exit(f'[-] {e} (download deleted)')
    except FetchError as e:
        sys.exit(f'[-] {e}')
    print(f'[+] Saved {path}, SHA-256 verified')

if __name__ == '__main__':
    main()
