# What it does: Defines the three object kinds (blob, tree, commit), their canonical byte encodings and their content hashes
# How it does: Each object is an immutable value (a namedtuple). The hash is recomputed on demand from `"<type> <len>\0" + serialize()`, so it can never go stale. `OBJECT_TYPES` maps a type tag to its class for the object store
# What data structure it uses: Tuples (immutable records), a sorted tuple of entries for trees (this is what makes the Merkle tree hash deterministic), Dictionary (type tag dispatch table)

import hashlib
import re
from collections import namedtuple

from .errors import Corrupt, InvalidArgument

HASH_SIZE = 20

MODE_FILE = '100644'
MODE_EXECUTABLE = '100755'
MODE_DIRECTORY = '040000'

# Time and offset at the end of an author/committer line: "<who> <seconds> <+HHMM>"
SIGNATURE_RE = re.compile(r'[^\n]+ \d+ [+-]\d{4}')
SIGNATURE_TIME_RE = re.compile(r'(\d+)\s[+-]\d{4}$')


def object_header(obj_type, length):
    return f'{obj_type} {length}\0'.encode()


def hash_content(content, obj_type): # Returns the raw 20-byte SHA-1 of an object of the given type
    return hashlib.sha1(object_header(obj_type, len(content)) + content).digest()


def to_hex(digest):
    return digest.hex()


def from_hex(sha1):
    try:
        digest = bytes.fromhex(sha1)
    except (TypeError, ValueError):
        raise InvalidArgument(f"Invalid SHA-1 hash: {sha1!r}")
    if len(digest) != HASH_SIZE:
        raise InvalidArgument(f"Invalid SHA-1 hash: {sha1!r}")
    return digest


def _check_digest(value, what):
    if not isinstance(value, bytes) or len(value) != HASH_SIZE:
        raise InvalidArgument(f"{what} must be {HASH_SIZE} bytes (raw SHA-1)")
    return value


def _check_signature(value, what):
    if value is not None and not (isinstance(value, str) and SIGNATURE_RE.fullmatch(value)):
        raise InvalidArgument(f"Invalid {what} format: {value}")
    return value


class _Hashable:
    __slots__ = ()
    type_tag = None

    def digest(self):
        return hash_content(self.serialize(), self.type_tag)

    def sha1(self):
        return to_hex(self.digest())


class Blob(_Hashable, namedtuple('Blob', ['data'])):
    __slots__ = ()
    type_tag = 'blob'

    def __new__(cls, data=b''):
        if data is None:
            raise InvalidArgument("Content cannot be None")
        return super().__new__(cls, bytes(data))

    def serialize(self):
        return self.data

    @classmethod
    def deserialize(cls, data):
        return cls(data)


class TreeEntry(namedtuple('TreeEntry', ['mode', 'sha', 'name'])):
    __slots__ = ()

    @property
    def is_tree(self):
        return self.mode in (MODE_DIRECTORY, '40000')

    @property
    def is_blob(self):
        return self.mode in (MODE_FILE, MODE_EXECUTABLE)

    @property
    def object_type(self):
        if self.is_blob:
            return 'blob'
        if self.is_tree:
            return 'tree'
        return 'unknown'

    def sha1(self):
        return to_hex(self.sha)


class Tree(_Hashable, namedtuple('Tree', ['entries'])):
    """
    A directory listing. Entries are always held sorted by name; adding an
    entry returns a new tree with the entry inserted in order (an entry with
    the same name is replaced).
    """
    __slots__ = ()
    type_tag = 'tree'

    def __new__(cls, entries=()):
        by_name = {}
        for entry in entries:
            if not isinstance(entry, TreeEntry):
                entry = TreeEntry(*entry)
            _check_digest(entry.sha, "Tree entry hash")
            by_name[entry.name] = entry
        return super().__new__(cls, tuple(sorted(by_name.values(), key=lambda e: e.name)))

    def add_entry(self, entry):
        return Tree(self.entries + (entry,))

    def add_file(self, name, sha, mode=MODE_FILE):
        return self.add_entry(TreeEntry(mode, sha, name))

    def add_directory(self, name, sha):
        return self.add_entry(TreeEntry(MODE_DIRECTORY, sha, name))

    def get(self, name):
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def serialize(self):
        return b''.join(
            f'{entry.mode} {entry.name}\0'.encode() + entry.sha
            for entry in self.entries
        )

    @classmethod
    def deserialize(cls, data):
        entries = []
        pos = 0
        while pos < len(data):
            nul = data.find(b'\0', pos)
            if nul == -1:
                raise Corrupt("Tree entry is missing its NUL terminator")
            try:
                mode, name = data[pos:nul].decode().split(' ', 1)
            except ValueError:
                raise Corrupt(f"Invalid tree entry format: {data[pos:nul]!r}")
            pos = nul + 1
            if pos + HASH_SIZE > len(data):
                raise Corrupt(f"Tree entry '{name}' is truncated")
            entries.append(TreeEntry(mode, data[pos:pos + HASH_SIZE], name))
            pos += HASH_SIZE
        return cls(entries)


class Commit(_Hashable, namedtuple('Commit', ['tree', 'parents', 'author', 'committer', 'message'])):
    """
    A snapshot with history. `tree` and each parent are raw 20-byte hashes;
    parent order is insertion order. Signatures are validated on
    construction, so an invalid value never produces a Commit. Use the
    `with_*` helpers to derive a changed commit; they validate too.
    """
    __slots__ = ()
    type_tag = 'commit'

    def __new__(cls, tree=None, parents=(), author=None, committer=None, message=''):
        if tree is not None:
            _check_digest(tree, "Tree hash")
        parents = tuple(_check_digest(p, "Parent hash") for p in parents)
        _check_signature(author, 'author')
        _check_signature(committer, 'committer')
        return super().__new__(cls, tree, parents, author, committer, message or '')

    def with_tree(self, tree):
        return Commit(tree, self.parents, self.author, self.committer, self.message)

    def with_parent(self, parent):
        return Commit(self.tree, self.parents + (parent,), self.author, self.committer, self.message)

    def with_author(self, author):
        return Commit(self.tree, self.parents, author, self.committer, self.message)

    def with_committer(self, committer):
        return Commit(self.tree, self.parents, self.author, committer, self.message)

    def with_message(self, message):
        return Commit(self.tree, self.parents, self.author, self.committer, message)

    @property
    def is_root(self):
        return not self.parents

    @property
    def timestamp(self): # Committer time, falling back to author time, 0 when neither is set
        signature = self.committer or self.author
        if not signature:
            return 0
        match = SIGNATURE_TIME_RE.search(signature)
        return int(match.group(1)) if match else 0

    def serialize(self):
        lines = []
        if self.tree is not None:
            lines.append(f'tree {to_hex(self.tree)}\n')
        for parent in self.parents:
            lines.append(f'parent {to_hex(parent)}\n')
        if self.author is not None:
            lines.append(f'author {self.author}\n')
        if self.committer is not None:
            lines.append(f'committer {self.committer}\n')
        lines.append('\n')
        lines.append(self.message)
        return ''.join(lines).encode()

    @classmethod
    def deserialize(cls, data):
        if not data:
            return cls()
        try:
            content = data.decode()
        except UnicodeDecodeError:
            raise Corrupt("Commit is not valid UTF-8")

        if content.startswith('\n'):
            header, body = '', content[1:]
        else:
            header, sep, body = content.partition('\n\n')
            if not sep:
                header, body = content, ''

        tree = None
        parents = []
        author = committer = None
        for line in header.split('\n'):
            if line.startswith('tree '):
                tree = from_hex(line[len('tree '):])
            elif line.startswith('parent '):
                parents.append(from_hex(line[len('parent '):]))
            elif line.startswith('author '):
                author = line[len('author '):]
            elif line.startswith('committer '):
                committer = line[len('committer '):]
        return cls(tree, parents, author, committer, body)


OBJECT_TYPES = {cls.type_tag: cls for cls in (Blob, Tree, Commit)}
