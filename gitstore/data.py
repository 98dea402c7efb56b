#serves as disk: the loose object database and the ref files
import io
import logging
import os
import string
import tempfile
import zlib

from collections import namedtuple
from contextlib import contextmanager

from . import objects
from .errors import (AmbiguousReference, DetachedHead, InvalidReference, ObjectNotFound,
                     SizeMismatch, UnexpectedObjectKind)

logger = logging.getLogger(__name__)

GIT_DIR = '.git' #the directory holding objects/ and the refs
CHUNK_SIZE = 64 * 1024
MIN_PREFIX = 3
MAX_HEADER_SIZE = 64 #"commit " + 20 digits + NUL is 28

@contextmanager
def change_git_dir(new_dir):
    global GIT_DIR
    old_dir = GIT_DIR
    GIT_DIR = f'{new_dir}/.git'
    try:
        yield
    finally:
        GIT_DIR = old_dir #restoring

def init():
    os.makedirs(f'{GIT_DIR}/objects', exist_ok=True)
    os.makedirs(f'{GIT_DIR}/refs/heads', exist_ok=True)

#the checked out directory the git dir lives in
def work_tree():
    return os.path.dirname(GIT_DIR) or '.'

def object_path(oid):
    return f'{GIT_DIR}/objects/{oid[:2]}/{oid[2:]}'

def object_exists(oid):
    return os.path.isfile(object_path(oid))


class HashWriter:
    """Deflates everything written to it into ``out`` while hashing the
    uncompressed bytes, so the id is known once the object is on disk."""

    def __init__(self, out):
        self.out = out
        self.hasher = objects.new_hasher()
        self.compressor = zlib.compressobj()

    def write(self, chunk):
        self.hasher.update(chunk)
        self.out.write(self.compressor.compress(chunk))
        return len(chunk)

    def finish(self):
        self.out.write(self.compressor.flush())
        return self.hasher.hexdigest()


def _copy_exact(reader, writer, size):
    remaining = size
    while remaining:
        chunk = reader.read(min(CHUNK_SIZE, remaining))
        if not chunk:
            raise SizeMismatch(size, size - remaining)
        writer.write(chunk)
        remaining -= len(chunk)
    extra = reader.read(CHUNK_SIZE)
    if extra:
        raise SizeMismatch(size, size + len(extra))

def _write_to(out, type_, size, reader):
    writer = HashWriter(out)
    writer.write(objects.encode_header(type_, size))
    _copy_exact(reader, writer, size)
    return writer.finish()

def write_object(type_, size, reader, write=True):
    """Store ``size`` bytes from ``reader`` as an object of kind ``type_``.

    The object is compressed into a temporary file inside objects/ and renamed
    onto its final path only once complete, so readers never see a partial
    object. With ``write=False`` only the id is computed.
    """
    if not write:
        with open(os.devnull, 'wb') as sink:
            return _write_to(sink, type_, size, reader)

    tmp = tempfile.NamedTemporaryFile(dir=f'{GIT_DIR}/objects', prefix='tmp_obj_', delete=False)
    try:
        with tmp:
            oid = _write_to(tmp, type_, size, reader)
            tmp.flush()
            os.fsync(tmp.fileno())
        path = object_path(oid)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        os.chmod(tmp.name, 0o444)
        os.replace(tmp.name, path) #same content always lands on the same path, last writer wins
    except Exception:
        if os.path.exists(tmp.name):
            os.remove(tmp.name)
        raise
    logger.debug(f'wrote {type_} {oid} ({size} bytes)')
    return oid

#in-memory payloads (trees, commits, hash-object on small data)
def hash_object(data, type_='blob', write=True):
    return write_object(type_, len(data), io.BytesIO(data), write=write)


class _InflateReader(io.RawIOBase):
    #streams the decompressed bytes of a file, never inflating more than asked for

    def __init__(self, f):
        self._file = f
        self._inflater = zlib.decompressobj()

    def readable(self):
        return True

    def readinto(self, buf):
        while len(buf):
            if self._inflater.unconsumed_tail:
                data = self._inflater.unconsumed_tail
            elif self._inflater.eof:
                return 0
            else:
                data = self._file.read(CHUNK_SIZE)
                if not data:
                    return 0
            try:
                out = self._inflater.decompress(data, len(buf))
            except zlib.error as e:
                raise OSError(f'corrupt object stream: {e}') from e
            if out:
                buf[:len(out)] = out
                return len(out)
        return 0

    def close(self):
        self._file.close()
        super().close()


class ObjectHandle:
    """An opened object. ``read`` never returns more than the declared size,
    however much data the compressed stream would inflate to."""

    def __init__(self, oid, kind, size, stream):
        self.oid = oid
        self.kind = kind
        self.size = size
        self._stream = stream
        self._remaining = size

    def read(self, n=-1):
        if n is None or n < 0 or n > self._remaining:
            n = self._remaining
        data = self._stream.read(n) if n else b''
        self._remaining -= len(data)
        return data

    #copies the rest of the payload and checks it matched the declared size
    def copy_to(self, out):
        copied = 0
        while True:
            chunk = self.read(CHUNK_SIZE)
            if not chunk:
                break
            out.write(chunk)
            copied += len(chunk)
        if self._remaining:
            raise SizeMismatch(self.size, self.size - self._remaining)
        return copied

    def read_all(self):
        buf = io.BytesIO()
        self.copy_to(buf)
        return buf.getvalue()

    def close(self):
        self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def resolve_oid(prefix):
    if len(prefix) < MIN_PREFIX:
        raise InvalidReference(f'object id prefix must be at least {MIN_PREFIX} characters: {prefix!r}')
    if not all(c in string.hexdigits for c in prefix):
        raise InvalidReference(f'{prefix!r} is not a hex object id')
    prefix = prefix.lower()
    fan_dir = f'{GIT_DIR}/objects/{prefix[:2]}'
    try:
        names = os.listdir(fan_dir)
    except FileNotFoundError:
        names = []
    matches = [name for name in names
               if name.startswith(prefix[2:]) and os.path.isfile(f'{fan_dir}/{name}')]
    if not matches:
        raise ObjectNotFound(f'no object found for {prefix}')
    if len(matches) > 1:
        raise AmbiguousReference(prefix, len(matches))
    return prefix[:2] + matches[0]

def _read_header(stream):
    header = bytearray()
    while len(header) < MAX_HEADER_SIZE:
        byte = stream.read(1)
        if not byte:
            break
        header += byte
        if byte == b'\x00':
            break
    return objects.decode_header(bytes(header))

def open_object(prefix):
    oid = resolve_oid(prefix)
    stream = io.BufferedReader(_InflateReader(open(object_path(oid), 'rb')), CHUNK_SIZE)
    try:
        kind, size = _read_header(stream)
    except Exception:
        stream.close()
        raise
    logger.debug(f'opened {kind} {oid} ({size} bytes)')
    return ObjectHandle(oid, kind, size, stream)

#gives the verified payload, optionally insisting on its kind
def get_object(oid, expected=None):
    with open_object(oid) as obj:
        if expected is not None and obj.kind != objects.ObjectKind.parse(expected):
            raise UnexpectedObjectKind(obj.oid, expected, obj.kind)
        return obj.read_all()


RefValue = namedtuple('RefValue', ['symbolic', 'value'])

#updates or creates a ref file with the given oid (or symbolic value)
def update_ref(ref, value, deref=True):
    ref = _get_ref_internal(ref, deref)[0]
    assert value.value
    if value.symbolic:
        value = f'ref: {value.value}'
    else:
        value = value.value

    ref_path = f'{GIT_DIR}/{ref}'
    os.makedirs(os.path.dirname(ref_path), exist_ok=True)
    with open(ref_path, 'w') as f:
        f.write(f'{value}\n')

def get_ref(ref, deref=True):
    return _get_ref_internal(ref, deref)[1]

#returns the ref path actually pointed at and its RefValue
def _get_ref_internal(ref, deref):
    ref_path = f'{GIT_DIR}/{ref}'
    value = None
    if os.path.isfile(ref_path):
        with open(ref_path) as f:
            value = f.read().strip() #either an oid or "ref: refs/heads/main"
    symbolic = bool(value) and value.startswith('ref:')
    if symbolic:
        value = value.split(':', 1)[1].strip()
        if deref:
            return _get_ref_internal(value, deref=True)
    return ref, RefValue(symbolic=symbolic, value=value)

#the branch ref HEAD points at, e.g. refs/heads/main
def head_branch():
    HEAD = get_ref('HEAD', deref=False)
    if not HEAD.symbolic:
        raise DetachedHead("you can't commit in a headless state")
    return HEAD.value
