#every error the store raises derives from GitStoreError so the cli can catch them in one place
#filesystem failures are left as plain OSError


class GitStoreError(Exception):
    pass


#lookup errors
class InvalidReference(GitStoreError):
    pass


class ObjectNotFound(GitStoreError):
    pass


class AmbiguousReference(GitStoreError):
    def __init__(self, prefix, count):
        super().__init__(f'{count} objects match {prefix}')
        self.prefix = prefix
        self.count = count


#codec errors
class MalformedHeader(GitStoreError):
    pass


class UnknownObjectKind(MalformedHeader):
    pass


class MalformedTreeEntry(GitStoreError):
    pass


class UnknownMode(MalformedTreeEntry):
    pass


class SizeMismatch(GitStoreError):
    def __init__(self, expected, actual):
        super().__init__(f'object size mismatch, expected {expected}, got {actual}')
        self.expected = expected
        self.actual = actual


class UnexpectedObjectKind(GitStoreError):
    def __init__(self, oid, expected, actual):
        super().__init__(f'{oid}: expected {expected} got {actual}')
        self.oid = oid
        self.expected = expected
        self.actual = actual


class EmptyTree(GitStoreError):
    pass


#raised by the collaborators (config and refs)
class MissingIdentity(GitStoreError):
    pass


class DetachedHead(GitStoreError):
    pass


class UnknownConfigKey(GitStoreError):
    pass
