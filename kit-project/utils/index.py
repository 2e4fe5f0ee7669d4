# What it does: Reads and writes the `.kit/index` staging file
# How it does: Binary format, big-endian. Header: b'DIRC', version 2, entry count. Each entry: ctime s/ns, mtime s/ns, 8 reserved bytes, mode, 8 reserved bytes, size, 20-byte SHA-1, 2-byte path length, UTF-8 path, NUL padding to a multiple of 8 bytes. A SHA-1 of everything before it closes the file and is checked on every load. The whole file is rewritten on save
# What data structure it uses: Dictionary (mapping file paths to IndexEntry records), enumerated in sorted path order

import hashlib
import os
import stat
import struct
from collections import namedtuple

from .errors import ChecksumMismatch, Corrupt, PathTooLong, Truncated, UnsupportedVersion

SIGNATURE = b'DIRC'
VERSION = 2

MODE_FILE = 0o100644
MODE_EXECUTABLE = 0o100755

HEADER = struct.Struct('>4sII')
# ctime_s, ctime_ns, mtime_s, mtime_ns, (8 reserved), mode, (8 reserved), size, sha1, path length
ENTRY = struct.Struct('>IIII8xI8xI20sH')
CHECKSUM_SIZE = 20
MAX_PATH_LENGTH = 0xFFF
NULL_SHA = b'\0' * 20


class IndexEntry(namedtuple('IndexEntry', ['path', 'sha', 'mode', 'size', 'mtime_s', 'mtime_ns'])):
    """
    One staged file. Two entries are the same entry when they have the same
    path. A zero-mode, zero-size, zero-hash entry is a tombstone: the path is
    staged for removal from the next commit.
    """
    __slots__ = ()

    def __eq__(self, other):
        if not isinstance(other, IndexEntry):
            return NotImplemented
        return self.path == other.path

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash(self.path)

    @classmethod
    def tombstone(cls, path):
        return cls(path, NULL_SHA, 0, 0, 0, 0)

    @classmethod
    def from_file(cls, path, sha, file_path): # Builds an entry from the stat data of a working file
        st = os.stat(file_path)
        mode = MODE_EXECUTABLE if st.st_mode & stat.S_IXUSR else MODE_FILE
        return cls(path, sha, mode, st.st_size & 0xFFFFFFFF,
                   int(st.st_mtime_ns // 1_000_000_000) & 0xFFFFFFFF, st.st_mtime_ns % 1_000_000_000)

    @property
    def is_tombstone(self):
        return self.mode == 0 and self.size == 0 and self.sha == NULL_SHA

    @property
    def is_executable(self):
        return self.mode == MODE_EXECUTABLE

    def sha1(self):
        return self.sha.hex()

    def stat_matches(self, file_path): # True if size and mtime of the working file equal the recorded ones
        try:
            st = os.stat(file_path)
        except FileNotFoundError:
            return False
        return (st.st_size & 0xFFFFFFFF == self.size
                and int(st.st_mtime_ns // 1_000_000_000) & 0xFFFFFFFF == self.mtime_s
                and st.st_mtime_ns % 1_000_000_000 == self.mtime_ns)


class Index:

    def __init__(self, index_path):
        self.index_path = index_path
        self.entries = {}

    def add(self, entry):
        self.entries[entry.path] = entry

    def remove(self, path):
        self.entries.pop(path, None)

    def get(self, path):
        return self.entries.get(path)

    def __contains__(self, path):
        return path in self.entries

    def __len__(self):
        return len(self.entries)

    def get_entries(self): # Entries in path order, independent of insertion order
        return [self.entries[path] for path in sorted(self.entries)]

    def clear(self):
        self.entries.clear()

    def is_empty(self):
        return not self.entries

    def hashes(self, include_tombstones=False): # {path: sha} for the staged entries
        return {
            entry.path: entry.sha
            for entry in self.get_entries()
            if include_tombstones or not entry.is_tombstone
        }

    def serialize(self):
        parts = [HEADER.pack(SIGNATURE, VERSION, len(self.entries))]
        for entry in self.get_entries():
            parts.append(_pack_entry(entry))
        data = b''.join(parts)
        return data + hashlib.sha1(data).digest()

    def save(self):
        data = self.serialize()
        os.makedirs(os.path.dirname(self.index_path), exist_ok=True)
        with open(self.index_path, 'wb') as f:
            f.write(data)

    def load(self):
        """
        Replaces the in-memory entries with the contents of the index file.
        A missing file is an empty index.
        """
        self.entries.clear()
        if not os.path.exists(self.index_path):
            return
        with open(self.index_path, 'rb') as f:
            data = f.read()
        for entry in parse_index(data):
            self.entries[entry.path] = entry


def _pack_entry(entry):
    path_bytes = entry.path.encode()
    if len(path_bytes) > MAX_PATH_LENGTH:
        raise PathTooLong(f"Path too long: {entry.path}")
    packed = ENTRY.pack(entry.mtime_s, entry.mtime_ns, entry.mtime_s, entry.mtime_ns,
                        entry.mode, entry.size, entry.sha, len(path_bytes)) + path_bytes
    padding = (8 - len(packed) % 8) % 8
    return packed + b'\0' * padding


def parse_index(data): # Decodes a complete index file into a list of IndexEntry
    if len(data) < HEADER.size + CHECKSUM_SIZE:
        raise Truncated("Index file too short")

    body, expected = data[:-CHECKSUM_SIZE], data[-CHECKSUM_SIZE:]
    if hashlib.sha1(body).digest() != expected:
        raise ChecksumMismatch("Index file checksum mismatch")

    signature, version, count = HEADER.unpack_from(body, 0)
    if signature != SIGNATURE:
        raise Corrupt(f"Invalid index signature: {signature!r}")
    if version != VERSION:
        raise UnsupportedVersion(f"Unsupported index version: {version}")

    entries = []
    pos = HEADER.size
    for _ in range(count):
        if pos + ENTRY.size > len(body):
            raise Truncated("Index entry extends past end of file")
        _, _, mtime_s, mtime_ns, mode, size, sha, flags = ENTRY.unpack_from(body, pos)
        path_length = flags & MAX_PATH_LENGTH
        path_start = pos + ENTRY.size
        if path_start + path_length > len(body):
            raise Truncated("Index entry path extends past end of file")
        try:
            path = body[path_start:path_start + path_length].decode()
        except UnicodeDecodeError:
            raise Corrupt("Index entry path is not valid UTF-8")
        entry_size = ENTRY.size + path_length
        pos += entry_size + (8 - entry_size % 8) % 8
        entries.append(IndexEntry(path, sha, mode, size, mtime_s, mtime_ns))
    return entries
