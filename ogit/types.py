import enum
from typing import TypeAlias, NamedTuple, Literal, Optional, Union

Path: TypeAlias = str  # a path in the filesystem
OID: TypeAlias = str  # hex hash, 40 chars
RawOID: TypeAlias = bytes  # binary hash, 20 bytes
ObjectType: TypeAlias = Literal['blob', 'tree', 'commit']

OID_SIZE = 20


class TreeEntryMode(enum.Enum):
    DIRECTORY = '40000'
    REGULAR_FILE = '100644'
    EXECUTABLE_FILE = '100755'
    SYMBOLIC_LINK = '120000'


class TreeEntry(NamedTuple):
    mode: TreeEntryMode
    name: str
    oid: RawOID


class PersonInfo(NamedTuple):
    name: str = 'John Doe'
    email: str = 'john.doe@example.com'
    timestamp: int = 1234567890
    timezone_offset: int = 0  # minutes east of UTC


class Blob(NamedTuple):
    data: bytes


class Tree(NamedTuple):
    entries: tuple[TreeEntry, ...]


class Commit(NamedTuple):
    tree: RawOID
    parent: Optional[RawOID]
    author: PersonInfo
    committer: PersonInfo
    message: str


Object: TypeAlias = Union[Blob, Tree, Commit]
