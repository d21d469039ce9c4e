import hashlib
import os

import pytest

from ogit import base, codec, data, errors, executable
from ogit.types import Blob, PersonInfo, TreeEntryMode

posix_only = pytest.mark.skipif(os.name != 'posix', reason='needs POSIX permissions and links')


def write_file(path, content, mode=0o644):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    os.chmod(path, mode)
    return path


def test_store_and_read_world(repo):
    hello = write_file(repo / 'hello.txt', b'world')
    oid = base.store_blob(hello.read_bytes())
    assert oid == hashlib.sha1(b'blob 5\x00world').hexdigest()
    assert oid.startswith('cc628ccd10742baea8241c5924df992b5c019f')
    assert base.read_blob(oid) == 'world'


def test_store_blob_dry_run(repo):
    oid = base.store_blob(b'world', write=False)
    assert oid == base.store_blob(b'world', write=False)
    with pytest.raises(errors.ObjectNotFound):
        base.read_blob(oid)


def test_read_blob_decodes_lossily(repo):
    oid = base.store_blob(b'caf\xe9')
    assert base.read_blob(oid) == 'caf\ufffd'
    assert data.get_object(bytes.fromhex(oid)) == Blob(b'caf\xe9')


def test_read_blob_of_tree_is_type_mismatch(repo):
    write_file(repo / 'src' / 'a.txt', b'a')
    tree = base.write_tree(str(repo / 'src'))
    with pytest.raises(errors.UnsupportedObjectType) as exc_info:
        base.read_blob(tree)
    assert exc_info.value.expected == 'blob'
    assert exc_info.value.actual == 'tree'


def test_read_absent_object(repo):
    with pytest.raises(errors.ObjectNotFound):
        base.read_blob('0' * 40)


def test_get_oid():
    assert base.get_oid('AB' * 20) == 'ab' * 20
    for name in ('abc', 'g' * 40, 'a' * 41):
        with pytest.raises(ValueError):
            base.get_oid(name)


def test_write_tree_sorts_entries(repo):
    for name in ('b', 'a', 'c'):
        write_file(repo / 'work' / name, name.encode())
    tree = base.write_tree(str(repo / 'work'))
    assert base.list_tree(tree, name_only=True) == 'a\nb\nc\n'


def test_write_tree_skips_git_dir(repo):
    write_file(repo / 'file.txt', b'content')
    tree = base.write_tree(str(repo))
    assert base.list_tree(tree, name_only=True) == 'file.txt\n'


def test_list_tree_full_format(repo):
    write_file(repo / 'work' / 'a.txt', b'a')
    (repo / 'work' / 'sub').mkdir()
    write_file(repo / 'work' / 'sub' / 'b.txt', b'b')
    tree = base.write_tree(str(repo / 'work'))

    blob = base.store_blob(b'a', write=False)
    subtree = base.write_tree(str(repo / 'work' / 'sub'))
    assert base.list_tree(tree) == (
        f'100644 a.txt {blob}\n'
        f'40000 sub {subtree}\n'
    )


def test_list_tree_of_blob_is_type_mismatch(repo):
    with pytest.raises(errors.UnsupportedObjectType):
        base.list_tree(base.store_blob(b'a'))


def test_identical_directories_hash_identically(repo):
    for root in ('one', 'two'):
        write_file(repo / root / 'readme', b'hello\n')
        write_file(repo / root / 'pkg' / 'mod.py', b'x = 1\n')
        write_file(repo / root / 'pkg' / 'deep' / 'data.bin', b'\x00\x01')
    assert base.write_tree(str(repo / 'one')) == base.write_tree(str(repo / 'two'))


def test_different_content_hashes_differently(repo):
    write_file(repo / 'one' / 'f', b'1')
    write_file(repo / 'two' / 'f', b'2')
    assert base.write_tree(str(repo / 'one')) != base.write_tree(str(repo / 'two'))


def test_nested_trees_are_stored(repo):
    write_file(repo / 'work' / 'sub' / 'inner.txt', b'inner')
    tree = base.get_tree(base.write_tree(str(repo / 'work')))
    (entry,) = tree.entries
    assert entry.mode is TreeEntryMode.DIRECTORY
    subtree = base.get_tree(entry.oid.hex())
    assert [(e.name, e.mode) for e in subtree.entries] == [('inner.txt', TreeEntryMode.REGULAR_FILE)]
    assert base.read_blob(subtree.entries[0].oid.hex()) == 'inner'


def test_empty_directory(repo):
    (repo / 'empty').mkdir()
    tree = base.write_tree(str(repo / 'empty'))
    assert tree == hashlib.sha1(b'tree 0\x00').hexdigest()
    assert base.get_tree(tree).entries == ()


@posix_only
def test_modes(repo):
    work = repo / 'work'
    write_file(work / 'plain', b'plain')
    write_file(work / 'script', b'#!/bin/sh\n', mode=0o755)
    write_file(work / 'group_exec', b'x', mode=0o610)
    (work / 'dir').mkdir()
    write_file(work / 'dir' / 'f', b'f')
    os.symlink('plain', work / 'link')

    tree = base.get_tree(base.write_tree(str(work)))
    modes = {entry.name: entry.mode for entry in tree.entries}
    assert modes == {
        'dir': TreeEntryMode.DIRECTORY,
        'group_exec': TreeEntryMode.EXECUTABLE_FILE,
        'link': TreeEntryMode.SYMBOLIC_LINK,
        'plain': TreeEntryMode.REGULAR_FILE,
        'script': TreeEntryMode.EXECUTABLE_FILE,
    }
    assert base.list_tree(base.write_tree(str(work))).splitlines()[0].startswith('40000 dir ')


@posix_only
def test_symlink_stores_target_not_content(repo):
    work = repo / 'work'
    write_file(work / 'target.txt', b'target content')
    os.symlink('target.txt', work / 'link')
    os.symlink('does/not/exist', work / 'dangling')

    tree = base.get_tree(base.write_tree(str(work)))
    by_name = {entry.name: entry for entry in tree.entries}
    assert base.read_blob(by_name['link'].oid.hex()) == 'target.txt'
    assert base.read_blob(by_name['dangling'].oid.hex()) == 'does/not/exist'


@posix_only
def test_symlinked_directory_is_not_followed(repo):
    write_file(repo / 'real' / 'f', b'f')
    (repo / 'work').mkdir()
    os.symlink(repo / 'real', repo / 'work' / 'alias')
    tree = base.get_tree(base.write_tree(str(repo / 'work')))
    assert [entry.mode for entry in tree.entries] == [TreeEntryMode.SYMBOLIC_LINK]


@pytest.mark.skipif(not hasattr(os, 'mkfifo'), reason='needs named pipes')
def test_special_files_are_skipped(repo):
    write_file(repo / 'work' / 'file', b'f')
    os.mkfifo(repo / 'work' / 'pipe')
    tree = base.write_tree(str(repo / 'work'))
    assert base.list_tree(tree, name_only=True) == 'file\n'


def test_unreadable_directory_aborts(repo):
    with pytest.raises(FileNotFoundError):
        base.write_tree(str(repo / 'missing'))


def test_commit_tree(repo):
    write_file(repo / 'work' / 'a', b'a')
    tree = base.write_tree(str(repo / 'work'))
    oid = base.commit_tree(tree, 'initial\n')

    commit = base.get_commit(oid)
    assert commit.tree.hex() == tree
    assert commit.parent is None
    assert commit.author == PersonInfo()
    assert commit.committer == PersonInfo()
    assert commit.message == 'initial\n'

    raw = codec.encode(commit)
    assert oid == hashlib.sha1(raw).hexdigest()
    assert f'tree {tree}\n'.encode() in raw
    assert b'author John Doe <john.doe@example.com> 1234567890 +0000\n' in raw


def test_commit_tree_with_parent_and_identity(repo):
    write_file(repo / 'work' / 'a', b'a')
    tree = base.write_tree(str(repo / 'work'))
    first = base.commit_tree(tree, 'first\n')

    author = PersonInfo('Ada', 'ada@example.com', 1700000000, 120)
    second = base.commit_tree(tree, 'second\n', parent=first, author=author)

    commit = base.get_commit(second)
    assert commit.parent.hex() == first
    assert commit.author == author
    assert commit.committer == author
    assert second != first


def test_commit_tree_is_deterministic(repo):
    write_file(repo / 'work' / 'a', b'a')
    tree = base.write_tree(str(repo / 'work'))
    assert base.commit_tree(tree, 'msg\n') == base.commit_tree(tree, 'msg\n')


def test_commit_tree_checks_references(repo):
    blob = base.store_blob(b'not a tree')
    with pytest.raises(errors.UnsupportedObjectType):
        base.commit_tree(blob, 'msg\n')
    with pytest.raises(errors.ObjectNotFound):
        base.commit_tree('1' * 40, 'msg\n')

    write_file(repo / 'work' / 'a', b'a')
    tree = base.write_tree(str(repo / 'work'))
    with pytest.raises(errors.UnsupportedObjectType):
        base.commit_tree(tree, 'msg\n', parent=tree)


def test_executable_capability_resolution():
    assert executable._resolve('posix') is executable._posix_is_executable
    assert executable._resolve('nt') is executable._windows_is_executable
    assert executable._resolve('java') is executable._never_executable
    assert executable._never_executable('anything') is False


def test_windows_executable_approximation(monkeypatch):
    monkeypatch.setenv('PATHEXT', '.COM;.EXE;.BAT')
    assert executable._windows_is_executable('tool.exe')
    assert executable._windows_is_executable('run.BAT')
    assert not executable._windows_is_executable('notes.txt')
    assert not executable._windows_is_executable('Makefile')


@posix_only
def test_list_tree_keeps_undecodable_names(repo):
    write_file(repo / 'work' / os.fsdecode(b'caf\xe9'), b'x')
    tree = base.write_tree(str(repo / 'work'))
    assert base.list_tree(tree, name_only=True) == 'caf\udce9\n'
