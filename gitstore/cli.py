import argparse
import logging
import os
import sys

from . import base
from . import config
from . import data
from . import objects
from .errors import EmptyTree, GitStoreError
from .objects import ObjectKind

logger = logging.getLogger(__name__)

def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s %(name)s: %(message)s')
    try:
        args.func(args)
    except (GitStoreError, OSError) as e:
        logger.error(e)
        return 1
    return 0

def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='gitstore')
    parser.add_argument('-v', '--verbose', action='store_true', help='log every object read and written')
    commands = parser.add_subparsers(dest='command')
    commands.required = True

    init_parser = commands.add_parser('init')
    init_parser.set_defaults(func=init)

    cat_file_parser = commands.add_parser('cat-file')
    cat_file_parser.set_defaults(func=cat_file)
    mode = cat_file_parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('-p', dest='pretty', action='store_true', help='print the payload')
    mode.add_argument('-t', dest='show_type', action='store_true', help='print the object kind')
    mode.add_argument('-s', dest='show_size', action='store_true', help='print the object size')
    cat_file_parser.add_argument('object')

    hash_object_parser = commands.add_parser('hash-object')
    hash_object_parser.set_defaults(func=hash_object)
    hash_object_parser.add_argument('-w', dest='write', action='store_true',
                                    help='write the object into the store')
    hash_object_parser.add_argument('-t', '--type', default='blob', help='object kind (default: blob)')
    hash_object_parser.add_argument('file')

    ls_tree_parser = commands.add_parser('ls-tree')
    ls_tree_parser.set_defaults(func=ls_tree)
    ls_tree_parser.add_argument('--name-only', action='store_true')
    ls_tree_parser.add_argument('tree')

    write_tree_parser = commands.add_parser('write-tree')
    write_tree_parser.set_defaults(func=write_tree)

    commit_tree_parser = commands.add_parser('commit-tree')
    commit_tree_parser.set_defaults(func=commit_tree)
    commit_tree_parser.add_argument('tree')
    commit_tree_parser.add_argument('-m', '--message', required=True)
    commit_tree_parser.add_argument('-p', dest='parent')

    commit_parser = commands.add_parser('commit')
    commit_parser.set_defaults(func=commit)
    commit_parser.add_argument('-m', '--message', required=True)

    config_parser = commands.add_parser('config')
    config_parser.set_defaults(func=config_)
    config_parser.add_argument('key', help='user.name or user.email')
    config_parser.add_argument('value', nargs='?')

    return parser.parse_args(argv)


def init(args):
    base.init()
    print(f'Initialized empty gitstore repository in {os.path.abspath(data.GIT_DIR)}')

def _print_tree_entries(entries, name_only=False):
    for entry in entries:
        if name_only:
            print(entry.name)
        else:
            kind = objects.kind_for_mode(entry.mode)
            print(f'{objects.mode_label(entry.mode)} {kind} {entry.oid}\t{entry.name}')

def cat_file(args):
    with data.open_object(args.object) as obj:
        if args.show_type:
            print(obj.kind)
        elif args.show_size:
            print(obj.size)
        elif obj.kind is ObjectKind.TREE:
            _print_tree_entries(objects.decode_tree_entries(obj.read_all()))
        else:
            sys.stdout.flush()
            obj.copy_to(sys.stdout.buffer) #raw bytes, the payload need not be text
            sys.stdout.buffer.flush()

def hash_object(args):
    with open(args.file, 'rb') as f:
        size = os.fstat(f.fileno()).st_size
        print(data.write_object(ObjectKind.parse(args.type), size, f, write=args.write))

def ls_tree(args):
    _print_tree_entries(base.iter_tree_entries(args.tree), name_only=args.name_only)

def write_tree(args):
    oid = base.write_tree(data.work_tree())
    if oid is None:
        raise EmptyTree('empty working tree, nothing to write')
    print(oid)

def commit_tree(args):
    tree = data.resolve_oid(args.tree)
    parent = data.resolve_oid(args.parent) if args.parent else None
    identity = config.get_identity()
    print(base.write_commit(tree, parent, args.message, identity.signature,
                            identity.timestamp, identity.tz_offset))

def commit(args):
    print(base.commit(args.message))

def config_(args):
    if args.value is None:
        print(config.get_value(args.key))
    else:
        config.set_value(args.key, args.value)
