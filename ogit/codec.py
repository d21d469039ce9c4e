"""Canonical byte layout of stored objects.

Every object is serialized as ``b'<type> <payload length>\\0' + payload``.
The payload depends on the type:

* blob: the raw content.
* tree: ``b'<mode> <name>\\0'`` followed by the 20 byte hash, per entry,
  entries sorted by the bytes of their name.
* commit: ``tree``/``parent``/``author``/``committer`` header lines, a blank
  line, then the message as given.

Nothing here touches the disk; see ``ogit.data`` for that.
"""
import re
from typing import Iterable

from typing_extensions import assert_never

from . import errors
from . import types

_PREFIXES: dict[bytes, types.ObjectType] = {
    b'blob ': 'blob',
    b'tree ': 'tree',
    b'commit ': 'commit',
}

_PERSON_RE = re.compile(
    r'(?P<name>.*) <(?P<email>[^<>]*)> (?P<timestamp>-?\d+) (?P<offset>[+-]\d{4})')


def add_header(type_: types.ObjectType, payload: bytes) -> bytes:
    return f'{type_} {len(payload)}\0'.encode() + payload


def type_of(obj: types.Object) -> types.ObjectType:
    if isinstance(obj, types.Blob):
        return 'blob'
    elif isinstance(obj, types.Tree):
        return 'tree'
    elif isinstance(obj, types.Commit):
        return 'commit'
    else:
        assert_never(obj)


def encode(obj: types.Object) -> bytes:
    if isinstance(obj, types.Blob):
        payload = obj.data
    elif isinstance(obj, types.Tree):
        payload = encode_tree(obj.entries)
    elif isinstance(obj, types.Commit):
        payload = encode_commit(obj)
    else:
        assert_never(obj)
    return add_header(type_of(obj), payload)


def decode(raw: bytes) -> types.Object:
    type_, payload = split_header(raw)
    if type_ == 'blob':
        return types.Blob(payload)
    elif type_ == 'tree':
        return parse_tree(payload)
    else:
        return parse_commit(payload)


def split_header(raw: bytes) -> tuple[types.ObjectType, bytes]:
    """Return the object type and the payload, checked against its declared size."""
    for prefix, type_ in _PREFIXES.items():
        if raw.startswith(prefix):
            break
    else:
        token = raw.partition(b'\0')[0].partition(b' ')[0]
        raise errors.UnsupportedObjectType(token.decode('ascii', 'replace'))

    end = raw.find(b'\0', len(prefix))
    if end == -1:
        raise errors.CorruptObject('object header is not terminated')
    size = raw[len(prefix):end]
    if not size.isdigit():
        raise errors.CorruptObject(f'bad object length {size!r}')

    payload = raw[end + 1:]
    if len(payload) != int(size):
        raise errors.CorruptObject(
            f'object length mismatch: header says {int(size)}, found {len(payload)}')
    return type_, payload


def name_bytes(name: str) -> bytes:
    return name.encode('utf-8', 'surrogateescape')


def is_valid_name(name: str) -> bool:
    return bool(name) and name not in ('.', '..') and '/' not in name and '\0' not in name


def encode_tree(entries: Iterable[types.TreeEntry]) -> bytes:
    payload = b''
    for entry in sorted(entries, key=lambda e: name_bytes(e.name)):
        if not is_valid_name(entry.name):
            raise ValueError(f'invalid tree entry name {entry.name!r}')
        if len(entry.oid) != types.OID_SIZE:
            raise ValueError(f'tree entry {entry.name!r} has a {len(entry.oid)} byte hash')
        payload += f'{entry.mode.value} '.encode() + name_bytes(entry.name) + b'\0' + entry.oid
    return payload


def parse_tree(payload: bytes) -> types.Tree:
    entries = []
    offset = 0
    while offset < len(payload):
        space = payload.find(b' ', offset)
        if space == -1:
            raise errors.CorruptObject(f'tree entry at offset {offset} has no mode')
        mode = payload[offset:space].decode('ascii', 'replace')
        try:
            mode = types.TreeEntryMode(mode)
        except ValueError:
            raise errors.UnknownTreeMode(mode) from None

        nul = payload.find(b'\0', space + 1)
        if nul == -1:
            raise errors.CorruptObject(f'tree entry at offset {offset} has no name terminator')
        name = payload[space + 1:nul].decode('utf-8', 'surrogateescape')
        if not is_valid_name(name):
            raise errors.CorruptObject(f'invalid tree entry name {name!r}')

        oid = payload[nul + 1:nul + 1 + types.OID_SIZE]
        if len(oid) != types.OID_SIZE:
            raise errors.CorruptObject(f'tree entry {name!r} has a truncated hash')

        entries.append(types.TreeEntry(mode=mode, name=name, oid=oid))
        offset = nul + 1 + types.OID_SIZE
    return types.Tree(tuple(entries))


def format_offset(minutes: int) -> str:
    if abs(minutes) >= 100 * 60:
        raise ValueError(f'timezone offset {minutes} minutes does not fit in +HHMM')
    sign = '-' if minutes < 0 else '+'
    hours, minutes = divmod(abs(minutes), 60)
    return f'{sign}{hours:02}{minutes:02}'


def format_person(person: types.PersonInfo) -> str:
    for field in ('name', 'email'):
        value = getattr(person, field)
        if any(c in value for c in '<>\n'):
            raise ValueError(f'identity {field} {value!r} contains "<", ">" or a newline')
    return (f'{person.name} <{person.email}> '
            f'{person.timestamp} {format_offset(person.timezone_offset)}')


def encode_commit(commit: types.Commit) -> bytes:
    commit_ = f'tree {commit.tree.hex()}\n'
    if commit.parent is not None:
        commit_ += f'parent {commit.parent.hex()}\n'
    commit_ += f'author {format_person(commit.author)}\n'
    commit_ += f'committer {format_person(commit.committer)}\n'
    commit_ += '\n'
    commit_ += commit.message
    return commit_.encode()


def _parse_oid(value: str) -> types.RawOID:
    if len(value) != 2 * types.OID_SIZE:
        raise errors.CorruptObject(f'bad hash {value!r} in commit')
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise errors.CorruptObject(f'bad hash {value!r} in commit') from None


def _parse_person(value: str) -> types.PersonInfo:
    match = _PERSON_RE.fullmatch(value)
    if not match:
        raise errors.CorruptObject(f'bad identity {value!r} in commit')
    offset = match['offset']
    minutes = int(offset[1:3]) * 60 + int(offset[3:5])
    return types.PersonInfo(
        name=match['name'],
        email=match['email'],
        timestamp=int(match['timestamp']),
        timezone_offset=-minutes if offset[0] == '-' else minutes,
    )


def parse_commit(payload: bytes) -> types.Commit:
    try:
        text = payload.decode()
    except UnicodeDecodeError as e:
        raise errors.CorruptObject(f'commit is not valid UTF-8: {e}') from None

    headers, separator, message = text.partition('\n\n')
    if not separator:
        raise errors.CorruptObject('commit has no message separator')

    fields = {}
    for line in headers.split('\n'):
        key, _, value = line.partition(' ')
        if key not in ('tree', 'parent', 'author', 'committer'):
            raise errors.CorruptObject(f'unknown commit field {key!r}')
        if key in fields:
            raise errors.CorruptObject(f'repeated commit field {key!r}')
        fields[key] = value

    for key in ('tree', 'author', 'committer'):
        if key not in fields:
            raise errors.CorruptObject(f'commit has no {key}')

    return types.Commit(
        tree=_parse_oid(fields['tree']),
        parent=_parse_oid(fields['parent']) if 'parent' in fields else None,
        author=_parse_person(fields['author']),
        committer=_parse_person(fields['committer']),
        message=message,
    )
