import logging
import os
import string
from typing import Iterable, Optional

from . import codec
from . import data
from . import errors
from . import executable
from . import types

logger = logging.getLogger(__name__)


def get_oid(name: str) -> types.OID:
    is_hex = all(c in string.hexdigits for c in name)
    if len(name) == 2 * types.OID_SIZE and is_hex:
        return name.lower()
    raise ValueError(f'Not a valid object name {name}')


def _get_typed(oid: types.OID, expected: type) -> types.Object:
    obj = data.get_object(bytes.fromhex(get_oid(oid)))
    if not isinstance(obj, expected):
        raise errors.UnsupportedObjectType(
            type(obj).__name__.lower(), expected.__name__.lower(), oid=oid)
    return obj


def store_blob(content: bytes, write=True) -> types.OID:
    return data.hash_object(content, 'blob', write=write).hex()


def read_blob(oid: types.OID) -> str:
    # blobs are opaque bytes; only text output is decoded, lossily
    blob = _get_typed(oid, types.Blob)
    return blob.data.decode('utf-8', 'replace')


def get_tree(oid: types.OID) -> types.Tree:
    return _get_typed(oid, types.Tree)


def get_commit(oid: types.OID) -> types.Commit:
    return _get_typed(oid, types.Commit)


def list_tree(oid: types.OID, name_only=False) -> str:
    tree = get_tree(oid)
    if name_only:
        return ''.join(f'{entry.name}\n' for entry in tree.entries)
    return ''.join(f'{entry.mode.value} {entry.name} {entry.oid.hex()}\n'
                   for entry in tree.entries)


def is_ignored(path: types.Path) -> bool:
    return (os.path.basename(path) == data.GIT_DIR_NAME or
            os.path.abspath(path) == os.path.abspath(data.GIT_DIR))


def _iter_directory_entries(directory: types.Path) -> Iterable[types.TreeEntry]:
    with os.scandir(directory) as it:
        dir_entries = list(it)

    for dir_entry in dir_entries:
        path = dir_entry.path
        if is_ignored(path):
            continue
        if dir_entry.is_symlink():
            mode = types.TreeEntryMode.SYMBOLIC_LINK
            oid = data.hash_object(os.fsencode(os.readlink(path)))
        elif dir_entry.is_dir(follow_symlinks=False):
            mode = types.TreeEntryMode.DIRECTORY
            oid = _write_tree_recursive(path)
        elif dir_entry.is_file(follow_symlinks=False):
            with open(path, 'rb') as f:
                oid = data.hash_object(f.read())
            mode = (types.TreeEntryMode.EXECUTABLE_FILE if executable.is_executable(path)
                    else types.TreeEntryMode.REGULAR_FILE)
        else:
            logger.debug('skipping %s: not a file, directory or symlink', path)
            continue
        yield types.TreeEntry(mode=mode, name=dir_entry.name, oid=oid)


def _write_tree_recursive(directory: types.Path) -> types.RawOID:
    entries = sorted(_iter_directory_entries(directory), key=lambda e: codec.name_bytes(e.name))
    tree = types.Tree(tuple(entries))
    return data.put_object(codec.encode(tree))


def write_tree(directory: types.Path = '.') -> types.OID:
    return _write_tree_recursive(directory).hex()


def commit_tree(tree: types.OID,
                message: str,
                parent: Optional[types.OID] = None,
                author: Optional[types.PersonInfo] = None,
                committer: Optional[types.PersonInfo] = None) -> types.OID:
    get_tree(tree)
    if parent is not None:
        get_commit(parent)

    author = author or types.PersonInfo()
    commit_ = types.Commit(
        tree=bytes.fromhex(get_oid(tree)),
        parent=bytes.fromhex(get_oid(parent)) if parent is not None else None,
        author=author,
        committer=committer or author,
        message=message,
    )
    return data.put_object(codec.encode(commit_)).hex()
