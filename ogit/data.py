import os
import hashlib
import logging
import zlib
from contextlib import contextmanager

from . import codec
from . import errors
from . import types

logger = logging.getLogger(__name__)

GIT_DIR_NAME = '.ogit'
GIT_DIR: str = GIT_DIR_NAME
DEFAULT_BRANCH = 'refs/heads/main'


@contextmanager
def change_git_dir(new_dir):
    global GIT_DIR
    old_dir = GIT_DIR
    GIT_DIR = f'{new_dir}/{GIT_DIR_NAME}'
    try:
        yield
    finally:
        GIT_DIR = old_dir


def init():
    os.makedirs(f'{GIT_DIR}/objects', exist_ok=True)
    os.makedirs(f'{GIT_DIR}/refs/heads', exist_ok=True)
    head_path = f'{GIT_DIR}/HEAD'
    if not os.path.isfile(head_path):
        with open(head_path, 'w') as f:
            f.write(f'ref: {DEFAULT_BRANCH}\n')


def object_path(oid: types.RawOID) -> types.Path:
    hex_oid = oid.hex()
    return f'{GIT_DIR}/objects/{hex_oid[:2]}/{hex_oid[2:]}'


def object_exists(oid: types.RawOID) -> bool:
    return os.path.isfile(object_path(oid))


def put_object(obj: bytes, write=True) -> types.RawOID:
    """Store header-prefixed object bytes under their SHA-1 and return the raw hash.

    With ``write=False`` the hash is computed and nothing touches the disk.
    """
    oid = hashlib.sha1(obj).digest()
    if not write:
        return oid

    if object_exists(oid):
        logger.debug('object %s already stored', oid.hex())
        return oid

    path = object_path(oid)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as out:
        out.write(zlib.compress(obj))
    logger.debug('wrote object %s (%d bytes)', oid.hex(), len(obj))
    return oid


def hash_object(data: bytes, type_: types.ObjectType = 'blob', write=True) -> types.RawOID:
    return put_object(codec.add_header(type_, data), write=write)


def get_object(oid: types.RawOID) -> types.Object:
    path = object_path(oid)
    try:
        with open(path, 'rb') as f:
            compressed = f.read()
    except FileNotFoundError:
        raise errors.ObjectNotFound(oid.hex()) from None

    try:
        obj = zlib.decompress(compressed)
    except zlib.error as e:
        raise errors.CorruptObject(f'cannot decompress object {oid.hex()}: {e}', oid.hex()) from None

    logger.debug('read object %s (%d bytes)', oid.hex(), len(obj))
    try:
        return codec.decode(obj)
    except errors.ObjectError as e:
        if e.oid is None:
            e.oid = oid.hex()
        raise
