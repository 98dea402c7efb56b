"""Object codec: the uncompressed encoding of objects and tree entries.

An encoded object is ``b"<kind> <size>\\0" + payload``. A tree payload is a
concatenation of ``b"<octal mode> <name>\\0" + <raw digest>`` entries. Both
formats must match git byte for byte, since the id is the hash of them.
"""
import enum
import hashlib
import os
from collections import namedtuple

from .errors import MalformedHeader, MalformedTreeEntry, UnknownMode, UnknownObjectKind

HASH_ALGORITHM = 'sha1'

MODE_TREE = 0o40000
MODE_FILE = 0o100644
MODE_EXECUTABLE = 0o100755
MODE_SYMLINK = 0o120000
MODE_COMMIT = 0o160000 #submodule-like reference to a commit

MODES = (MODE_TREE, MODE_FILE, MODE_EXECUTABLE, MODE_SYMLINK, MODE_COMMIT)


class ObjectKind(enum.Enum):
    BLOB = 'blob'
    TREE = 'tree'
    COMMIT = 'commit'

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, token):
        try:
            return cls(token)
        except ValueError:
            raise UnknownObjectKind(f'unknown object kind: {token}') from None


TreeEntry = namedtuple('TreeEntry', ['mode', 'name', 'oid'])


def new_hasher():
    return hashlib.new(HASH_ALGORITHM)


def digest_size():
    return new_hasher().digest_size


def encode_header(kind, size):
    kind = ObjectKind.parse(kind)
    if size < 0:
        raise ValueError(f'negative object size {size}')
    return f'{kind} {size}'.encode() + b'\x00'


#takes everything up to and including the first NUL, anything after it is ignored
def decode_header(data):
    end = data.find(b'\x00')
    if end < 0:
        raise MalformedHeader('header is not NUL terminated')
    try:
        header = data[:end].decode('utf-8')
    except UnicodeDecodeError:
        raise MalformedHeader('header is not valid text') from None
    parts = header.split(' ')
    if len(parts) != 2:
        raise MalformedHeader(f'header is in invalid format: {header!r}')
    kind_token, size_token = parts
    kind = ObjectKind.parse(kind_token)
    if not (size_token.isascii() and size_token.isdigit()):
        raise MalformedHeader(f"object size isn't a number: {size_token!r}")
    return kind, int(size_token)


def format_mode(mode):
    return f'{mode:o}'


#the zero padded form git prints in ls-tree
def mode_label(mode):
    return f'{mode:06o}'


def kind_for_mode(mode):
    if mode == MODE_TREE:
        return ObjectKind.TREE
    if mode == MODE_COMMIT:
        return ObjectKind.COMMIT
    return ObjectKind.BLOB


def encode_tree_entry(mode, name, oid):
    if mode not in MODES:
        raise UnknownMode(f'unknown tree entry mode {mode:o}')
    name = os.fsencode(name)
    if not name or b'/' in name or b'\x00' in name:
        raise MalformedTreeEntry(f'invalid tree entry name {name!r}')
    try:
        digest = bytes.fromhex(oid)
    except ValueError:
        raise MalformedTreeEntry(f'invalid object id {oid!r}') from None
    if len(digest) != digest_size():
        raise MalformedTreeEntry(f'object id {oid} has the wrong length')
    return format_mode(mode).encode() + b' ' + name + b'\x00' + digest


def decode_tree_entries(data):
    width = digest_size()
    entries = []
    pos = 0
    while pos < len(data):
        end = data.find(b'\x00', pos)
        if end < 0:
            raise MalformedTreeEntry(f'truncated tree entry at offset {pos}')
        try:
            mode_and_name = data[pos:end].decode('utf-8')
        except UnicodeDecodeError:
            raise MalformedTreeEntry(f'tree entry at offset {pos} is not valid text') from None
        mode, sep, name = mode_and_name.partition(' ')
        if not sep or not name:
            raise MalformedTreeEntry(f'invalid tree entry format: {mode_and_name!r}')
        try:
            mode = int(mode, 8)
        except ValueError:
            raise UnknownMode(f'tree entry mode is not octal: {mode!r}') from None
        digest = data[end + 1:end + 1 + width]
        if len(digest) != width:
            raise MalformedTreeEntry(f'truncated object id for {name!r}')
        entries.append(TreeEntry(mode, name, digest.hex()))
        pos = end + 1 + width
    return entries


#git orders a directory "foo" as if it were named "foo/"
def tree_sort_key(name, is_dir):
    key = os.fsencode(name)
    return key + b'/' if is_dir else key
