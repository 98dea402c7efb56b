import logging
import os
import string

from collections import namedtuple

from . import config
from . import data
from . import objects
from . import walk
from .errors import EmptyTree, InvalidReference
from .objects import ObjectKind

logger = logging.getLogger(__name__)

def init():
    data.init()
    if not data.get_ref('HEAD', deref=False).value:
        data.update_ref('HEAD', data.RefValue(symbolic=True, value='refs/heads/main'), deref=False)

def is_ignored(name):
    return name == os.path.basename(data.GIT_DIR)

def _mode_for(entry):
    if entry.kind == 'symlink':
        return objects.MODE_SYMLINK
    if entry.kind == 'dir':
        return objects.MODE_TREE
    if entry.perm & 0o111:
        return objects.MODE_EXECUTABLE
    return objects.MODE_FILE

#streams the file into the store instead of reading it into memory
def _write_blob_file(path):
    with open(path, 'rb') as f:
        size = os.fstat(f.fileno()).st_size
        return data.write_object(ObjectKind.BLOB, size, f)

def write_tree(directory='.', walker=None):
    """Store ``directory`` as a tree object, recursively, and return its id.

    Entries are written in git's order, where a directory sorts as if its name
    ended in "/". Directories with no files in them are left out, and None is
    returned when nothing is left to store. Without a ``walker``, files that
    .gitignore or .ignore files exclude are not stored.
    """
    if walker is None:
        walker = walk.Walker(directory)
    entries = [entry for entry in walker(directory) if not is_ignored(entry.name)]
    entries.sort(key=lambda entry: objects.tree_sort_key(entry.name, entry.kind == 'dir'))

    tree = []
    for entry in entries:
        if entry.kind == 'dir':
            oid = write_tree(entry.path, walker)
            if oid is None:
                continue
        elif entry.kind == 'symlink':
            oid = data.hash_object(os.fsencode(os.readlink(entry.path)))
        else:
            oid = _write_blob_file(entry.path)
        tree.append(objects.encode_tree_entry(_mode_for(entry), entry.name, oid))

    if not tree:
        return None
    oid = data.hash_object(b''.join(tree), ObjectKind.TREE)
    logger.debug(f'tree {oid} for {directory} ({len(tree)} entries)')
    return oid

def iter_tree_entries(oid):
    yield from objects.decode_tree_entries(data.get_object(oid, ObjectKind.TREE))

#maps every file path below the tree (blobs, symlinks, commit links) to its oid
def get_tree(oid, base_path=''):
    result = {}
    for entry in iter_tree_entries(oid):
        path = base_path + entry.name
        if entry.mode == objects.MODE_TREE:
            result.update(get_tree(entry.oid, f'{path}/'))
        else:
            result[path] = entry.oid
    return result

def format_timezone(offset):
    sign = '-' if offset < 0 else '+'
    hours, minutes = divmod(abs(offset) // 60, 60)
    return f'{sign}{hours:02}{minutes:02}'

def write_commit(tree, parent, message, identity, timestamp, tz_offset):
    signature = f'{identity} {timestamp} {format_timezone(tz_offset)}'
    commit = f'tree {tree}\n'
    if parent:
        commit += f'parent {parent}\n'
    commit += f'author {signature}\n'
    commit += f'committer {signature}\n'
    commit += '\n'
    commit += f'{message}\n'
    return data.hash_object(commit.encode(), ObjectKind.COMMIT)

def _check_oid(oid):
    if len(oid) != 2 * objects.digest_size() or not all(c in string.hexdigits for c in oid):
        raise InvalidReference(f'bad object id {oid!r}')

#commits the working tree on top of the current branch and moves the branch
def commit(message):
    branch = data.head_branch()
    tree = write_tree(data.work_tree())
    if tree is None:
        raise EmptyTree('nothing to commit, the working tree is empty')
    parent = data.get_ref(branch).value #None for the first commit on a branch
    if parent:
        _check_oid(parent)
    identity = config.get_identity()
    oid = write_commit(tree, parent, message, identity.signature, identity.timestamp, identity.tz_offset)
    data.update_ref(branch, data.RefValue(symbolic=False, value=oid))
    logger.debug(f'{branch} -> {oid}')
    return oid

Commit = namedtuple('Commit', ['tree', 'parents', 'author', 'committer', 'message'])

def get_commit(oid):
    text = data.get_object(oid, ObjectKind.COMMIT).decode()
    headers, _, message = text.partition('\n\n')
    tree = author = committer = None
    parents = []
    for line in headers.splitlines():
        if line.startswith(' '):
            continue #continuation of a multi-line header such as gpgsig
        key, _, value = line.partition(' ')
        if key == 'tree':
            tree = value
        elif key == 'parent':
            parents.append(value)
        elif key == 'author':
            author = value
        elif key == 'committer':
            committer = value
    if message.endswith('\n'):
        message = message[:-1]
    return Commit(tree=tree, parents=parents, author=author, committer=committer, message=message)
