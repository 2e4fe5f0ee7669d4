# What it does: Persists blobs, trees and commits in the `.kit/objects` database and reads them back
# How it does: Content-addressed storage. An object's SHA-1 is its key; the file lives at `objects/<first 2 hex>/<remaining 38 hex>` and holds zlib(`"<type> <len>\0" + payload`). Storing an existing key is a no-op, so every distinct content is written exactly once. Loading re-hashes the decoded object and refuses anything whose hash does not match its key
# What data structure it uses: Hash Table / Dictionary (the on-disk object database is a dictionary keyed by SHA-1), Dictionary (type tag -> object class dispatch)

import os
import re
import tempfile
import zlib

from .errors import Corrupt, IntegrityError, InvalidArgument, NotFound, UnknownType
from .objects import OBJECT_TYPES, object_header

SHA1_RE = re.compile(r'^[0-9a-fA-F]{40}$')


class ObjectStore:

    def __init__(self, objects_dir):
        self.objects_dir = objects_dir

    def object_path(self, sha1): # Validates the key and maps it to its fan-out path
        if not isinstance(sha1, str) or not SHA1_RE.match(sha1):
            raise InvalidArgument(f"SHA-1 hash must be 40 hex characters: {sha1!r}")
        sha1 = sha1.lower()
        return os.path.join(self.objects_dir, sha1[:2], sha1[2:])

    def exists(self, sha1):
        return os.path.isfile(self.object_path(sha1))

    def delete(self, sha1): # Returns True if an object file was removed
        path = self.object_path(sha1)
        if not os.path.exists(path):
            return False
        os.remove(path)
        return True

    def store(self, obj):
        """
        Writes `obj` unless an object with the same hash is already present.
        Returns the hex hash either way.
        """
        sha1 = obj.sha1()
        path = self.object_path(sha1)
        if os.path.exists(path):
            return sha1

        content = obj.serialize()
        data = zlib.compress(object_header(obj.type_tag, len(content)) + content)

        object_dir = os.path.dirname(path)
        os.makedirs(object_dir, exist_ok=True)
        # Readers never see a partial object
        fd, tmp_path = tempfile.mkstemp(dir=object_dir, prefix='tmp_obj_')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return sha1

    def read_raw(self, sha1): # Returns (type, payload) without building or verifying the object
        path = self.object_path(sha1)
        if not os.path.exists(path):
            raise NotFound(f"Object not found: {sha1}")

        with open(path, 'rb') as f:
            compressed_data = f.read()
        try:
            data = zlib.decompress(compressed_data)
        except zlib.error as e:
            raise Corrupt(f"Object {sha1} cannot be decompressed: {e}")

        null_byte_index = data.find(b'\0')
        if null_byte_index == -1:
            raise Corrupt(f"Object {sha1} has no header")
        try:
            obj_type, length = data[:null_byte_index].decode().split(' ')
            length = int(length)
        except ValueError:
            raise Corrupt(f"Object {sha1} has an invalid header")

        content = data[null_byte_index + 1:null_byte_index + 1 + length]
        if len(content) < length:
            raise Corrupt(f"Object {sha1} is truncated: expected {length} bytes, got {len(content)}")
        return obj_type, content

    def load(self, sha1):
        obj_type, content = self.read_raw(sha1)

        cls = OBJECT_TYPES.get(obj_type)
        if cls is None:
            raise UnknownType(f"Unknown object type: {obj_type}")
        try:
            obj = cls.deserialize(content)
        except InvalidArgument as e:
            raise Corrupt(f"Object {sha1} is malformed: {e}")

        actual = obj.sha1()
        if actual != sha1.lower():
            raise IntegrityError(f"Hash mismatch! Expected: {sha1}, Actual: {actual}")
        return obj

    def load_typed(self, sha1, cls): # Loads an object and checks that it is an instance of `cls`
        obj = self.load(sha1)
        if not isinstance(obj, cls):
            raise InvalidArgument(f"Object {sha1} is a {obj.type_tag}, not a {cls.type_tag}")
        return obj
