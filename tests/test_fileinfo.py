import hashlib
import os

import pytest

import fileinfo

EMPTY_SHA256 = 'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'


@pytest.mark.parametrize('n, expected', [
    (0, '0 B'),
    (1023, '1023 B'),
    (1024, '1.0 KB'),
    (1536, '1.5 KB'),
    (1024 ** 2, '1.0 MB'),
    (5 * 1024 ** 3 + 1024 ** 3 // 2, '5.5 GB'),
    (1024 ** 6, '1.0 EB'),
    (1024 ** 7, '1024.0 EB'),
])
def test_format_bytes(n, expected):
    assert fileinfo.format_bytes(n) == expected


def test_format_bytes_rejects_negative():
    with pytest.raises(ValueError):
        fileinfo.format_bytes(-1)


def test_hash_file_matches_hashlib(tmp_path):
    data = os.urandom(3 * fileinfo.CHUNK_SIZE + 17)
    path = tmp_path / 'blob.bin'
    path.write_bytes(data)

    assert fileinfo.hash_file(path) == hashlib.sha256(data).hexdigest()
    # chunk boundaries don't change the digest
    assert fileinfo.hash_file(path, chunk_size=7) == hashlib.sha256(data).hexdigest()


def test_hash_file_missing(tmp_path):
    with pytest.raises(fileinfo.FileInfoError, match="can't open file"):
        fileinfo.hash_file(tmp_path / 'nope')


def test_file_info(tmp_path):
    path = tmp_path / 'report.txt'
    path.write_bytes(b'hello world\n')

    info = fileinfo.file_info(str(path))

    assert info.name == 'report.txt'
    assert info.size == 12
    assert info.sha256 == hashlib.sha256(b'hello world\n').hexdigest()
    assert os.path.isabs(info.path)


def test_file_info_relative_path_is_made_absolute(tmp_path, monkeypatch):
    (tmp_path / 'a.txt').write_bytes(b'a')
    monkeypatch.chdir(tmp_path)

    info = fileinfo.file_info('a.txt')

    assert os.path.isabs(info.path)
    assert os.path.samefile(info.path, tmp_path / 'a.txt')
    assert info.name == 'a.txt'


def test_file_info_empty_file(tmp_path):
    path = tmp_path / 'empty'
    path.write_bytes(b'')

    info = fileinfo.file_info(str(path))

    assert info.size == 0
    assert info.sha256 == EMPTY_SHA256
    assert fileinfo.format_bytes(info.size) == '0 B'


def test_file_info_missing(tmp_path):
    with pytest.raises(fileinfo.FileInfoError, match='file not found'):
        fileinfo.file_info(str(tmp_path / 'missing.iso'))


def test_file_info_directory(tmp_path):
    with pytest.raises(fileinfo.FileInfoError, match='not a regular file'):
        fileinfo.file_info(str(tmp_path))


def test_display_name():
    assert fileinfo.display_name(os.path.join('some', 'dir', 'file.tar.gz')) == 'file.tar.gz'
    assert fileinfo.display_name('file.tar.gz') == 'file.tar.gz'


def test_file_info_size_matches_hashed_bytes(tmp_path, monkeypatch):
    path = tmp_path / 'growing.log'
    path.write_bytes(b'first line\n')
    real_stat = os.stat

    def stat_then_append(p, *args, **kwargs):
        st = real_stat(p, *args, **kwargs)
        if str(p) == str(path):
            # the file grows after being stat'ed but before being hashed
            with open(path, 'ab') as f:
                f.write(b'second line\n')
        return st
    monkeypatch.setattr(fileinfo.os, 'stat', stat_then_append)

    info = fileinfo.file_info(str(path))

    data = b'first line\nsecond line\n'
    assert info.size == len(data)
    assert info.sha256 == hashlib.sha256(data).hexdigest()
