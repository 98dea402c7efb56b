#directory walkers used by write_tree, one level at a time
import logging
import os
import stat

from collections import namedtuple

import pathspec

logger = logging.getLogger(__name__)

DirEntry = namedtuple('DirEntry', ['name', 'path', 'kind', 'perm']) #kind is 'dir', 'file' or 'symlink'

IGNORE_FILES = ('.gitignore', '.ignore') #later files win within a directory

#every immediate child, with no ignore rules applied
def iter_dir(path):
    with os.scandir(path) as it:
        for entry in it:
            st = entry.stat(follow_symlinks=False)
            if stat.S_ISLNK(st.st_mode):
                kind = 'symlink'
            elif stat.S_ISDIR(st.st_mode):
                kind = 'dir'
            elif stat.S_ISREG(st.st_mode):
                kind = 'file'
            else:
                continue #sockets, fifos, devices
            yield DirEntry(entry.name, entry.path, kind, stat.S_IMODE(st.st_mode))


class Walker:
    """Lists directories below ``root`` like iter_dir, leaving out what the
    ignore files of that directory and of every directory above it (up to
    ``root``) exclude.

    Each ignore file is matched on its own, relative to the directory holding
    it, so a "!pattern" only re-includes what its own file excluded.
    """

    def __init__(self, root):
        self.root = os.path.abspath(root)
        self._specs = {}

    def __call__(self, path):
        chain = self._chain(os.path.abspath(path))
        for entry in iter_dir(path):
            if self._is_ignored(entry, chain):
                logger.debug(f'ignoring {entry.path}')
                continue
            yield entry

    #directories from root down to path that carry ignore rules
    def _chain(self, path):
        rel = os.path.relpath(path, self.root)
        directories = [self.root]
        if rel != '.' and not rel.startswith('..'):
            current = self.root
            for part in rel.split(os.sep):
                current = os.path.join(current, part)
                directories.append(current)
        return [(d, self._spec(d)) for d in directories if self._spec(d) is not None]

    def _spec(self, directory):
        if directory not in self._specs:
            lines = []
            for name in IGNORE_FILES:
                path = os.path.join(directory, name)
                if os.path.isfile(path):
                    with open(path) as f:
                        lines.extend(f.read().splitlines())
            self._specs[directory] = pathspec.GitIgnoreSpec.from_lines(lines) if lines else None
        return self._specs[directory]

    def _is_ignored(self, entry, chain):
        path = os.path.abspath(entry.path)
        for directory, spec in chain:
            rel = os.path.relpath(path, directory).replace(os.sep, '/')
            if entry.kind == 'dir':
                rel += '/' #so "build/" only matches directories
            if spec.match_file(rel):
                return True
        return False
