import pytest

import fileinfo
import serve_file

CONTENT = b'The quick brown fox jumps over the lazy dog\n' * 4096


@pytest.fixture()
def served_path(tmp_path):
    path = tmp_path / 'fox & hound <v1>.txt'
    path.write_bytes(CONTENT)
    return path


@pytest.fixture()
def info(served_path):
    return fileinfo.file_info(str(served_path))


@pytest.fixture()
def app(info):
    app = serve_file.create_app(info)
    app.config['TESTING'] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()
