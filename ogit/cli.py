import argparse
import datetime
import logging
import os
import sys
import time

from . import data
from . import base
from . import errors
from . import types

logger = logging.getLogger(__name__)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    if args.git_dir:
        data.GIT_DIR = args.git_dir

    try:
        args.func(args)
    except (errors.ObjectError, OSError, ValueError) as e:
        logger.debug('command %s failed', args.command, exc_info=True)
        print(f'fatal: {e}', file=sys.stderr)
        return 1
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='ogit')
    parser.add_argument('-v', '--verbose', action='store_true')
    parser.add_argument('--git-dir', help=f'repository directory (default: {data.GIT_DIR_NAME})')
    commands = parser.add_subparsers(dest='command')
    commands.required = True

    oid = base.get_oid

    init_parser = commands.add_parser('init')
    init_parser.set_defaults(func=init)

    hash_object_parser = commands.add_parser('hash-object')
    hash_object_parser.set_defaults(func=hash_object)
    hash_object_parser.add_argument('-w', '--write', action='store_true')
    hash_object_parser.add_argument('file')

    cat_file_parser = commands.add_parser('cat-file')
    cat_file_parser.set_defaults(func=cat_file)
    cat_file_parser.add_argument('-p', dest='pretty', action='store_true')
    cat_file_parser.add_argument('object', type=oid)

    ls_tree_parser = commands.add_parser('ls-tree')
    ls_tree_parser.set_defaults(func=ls_tree)
    ls_tree_parser.add_argument('--name-only', action='store_true')
    ls_tree_parser.add_argument('tree', type=oid)

    write_tree_parser = commands.add_parser('write-tree')
    write_tree_parser.set_defaults(func=write_tree)
    write_tree_parser.add_argument('directory', nargs='?', default='.')

    commit_tree_parser = commands.add_parser('commit-tree')
    commit_tree_parser.set_defaults(func=commit_tree)
    commit_tree_parser.add_argument('tree', type=oid)
    commit_tree_parser.add_argument('-m', '--message', required=True)
    commit_tree_parser.add_argument('-p', '--parent', type=oid)

    return parser.parse_args(argv)


def init(args):
    data.init()
    print(f'Initialized empty ogit repository in {os.path.abspath(data.GIT_DIR)}')


def hash_object(args):
    with open(args.file, 'rb') as f:
        print(base.store_blob(f.read(), write=args.write))


def cat_file(args):
    sys.stdout.write(base.read_blob(args.object))


def ls_tree(args):
    listing = base.list_tree(args.tree, name_only=args.name_only)
    # names that are not valid UTF-8 go out as their original bytes
    sys.stdout.flush()
    sys.stdout.buffer.write(listing.encode('utf-8', 'surrogateescape'))
    sys.stdout.buffer.flush()


def write_tree(args):
    print(base.write_tree(args.directory))


def _identity(role):
    name = os.environ.get(f'OGIT_{role}_NAME')
    if not name:
        return None
    offset = datetime.datetime.now().astimezone().utcoffset()
    return types.PersonInfo(
        name=name,
        email=os.environ.get(f'OGIT_{role}_EMAIL', ''),
        timestamp=int(time.time()),
        timezone_offset=int(offset.total_seconds()) // 60,
    )


def commit_tree(args):
    message = args.message if args.message.endswith('\n') else f'{args.message}\n'
    print(base.commit_tree(args.tree, message, parent=args.parent,
                           author=_identity('AUTHOR'),
                           committer=_identity('COMMITTER')))
