# What it does: Reads and writes HEAD, branch pointers (`refs/heads/<name>`) and tags (`refs/tags/<name>`)
# How it does: Every ref is a small text file. HEAD holds either `ref: refs/heads/<branch>` (attached) or a raw 40-hex commit hash (detached); branch and tag files hold a 40-hex commit hash and a newline
# What data structure it uses: Map / Dictionary (conceptually, the refs directories map names to commit hashes); the refs themselves are pointers into the commit graph

import os
import re

from .errors import AlreadyExists, InvalidArgument, NotFound

COMMIT_HASH_RE = re.compile(r'^[0-9a-f]{40}$')
HEADS_PREFIX = 'refs/heads/'


def _head_path(kit_dir):
    return os.path.join(kit_dir, 'HEAD')


def _heads_dir(kit_dir):
    return os.path.join(kit_dir, 'refs', 'heads')


def _tags_dir(kit_dir):
    return os.path.join(kit_dir, 'refs', 'tags')


def _read(path):
    with open(path, 'r') as f:
        return f.read().strip()


def _write(path, content):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w') as f:
        f.write(content)


def _check_name(name, what='Branch'):
    if not name or not name.strip():
        raise InvalidArgument(f"{what} name cannot be empty")
    if name.startswith(('.', '/')) or '..' in name.split('/') or '\\' in name:
        raise InvalidArgument(f"Invalid {what.lower()} name '{name}'")


def _check_hash(commit_hash):
    if not commit_hash or not COMMIT_HASH_RE.match(commit_hash):
        raise InvalidArgument(f"Invalid commit hash: {commit_hash}")


def _list_refs(directory): # Names of all ref files below `directory`, with '/' separators
    names = []
    for root, _, files in os.walk(directory):
        for name in files:
            rel_path = os.path.relpath(os.path.join(root, name), directory)
            names.append(rel_path.replace(os.sep, '/'))
    return sorted(names)


def get_head_ref(kit_dir): # Returns 'refs/heads/<branch>' when HEAD is symbolic, None when detached or missing
    head_path = _head_path(kit_dir)
    if not os.path.exists(head_path):
        return None
    head_content = _read(head_path)
    if head_content.startswith('ref: '):
        return head_content[len('ref: '):].strip()
    return None


def get_current_branch(kit_dir): # Name of the branch HEAD points to, or None if detached
    ref = get_head_ref(kit_dir)
    if ref and ref.startswith(HEADS_PREFIX):
        return ref[len(HEADS_PREFIX):]
    return None


def get_head_commit(kit_dir): # The commit hash HEAD resolves to, or None if there are no commits yet
    head_path = _head_path(kit_dir)
    if not os.path.exists(head_path):
        return None
    ref = get_head_ref(kit_dir)
    if ref is None:
        head_content = _read(head_path)
        return head_content if COMMIT_HASH_RE.match(head_content) else None
    branch_path = os.path.join(kit_dir, *ref.split('/'))
    if not os.path.exists(branch_path) or os.path.getsize(branch_path) == 0:
        return None
    return _read(branch_path)


def is_detached(kit_dir):
    return get_head_ref(kit_dir) is None and get_head_commit(kit_dir) is not None


def update_head_commit(kit_dir, commit_hash): # Moves whatever HEAD points at (the branch, or HEAD itself when detached)
    _check_hash(commit_hash)
    ref = get_head_ref(kit_dir)
    if ref is None:
        _write(_head_path(kit_dir), f"{commit_hash}\n")
    else:
        _write(os.path.join(kit_dir, *ref.split('/')), f"{commit_hash}\n")


def set_head_branch(kit_dir, branch_name):
    _check_name(branch_name)
    if not branch_exists(kit_dir, branch_name):
        raise NotFound(f"Branch does not exist: {branch_name}")
    _write(_head_path(kit_dir), f"ref: {HEADS_PREFIX}{branch_name}\n")


def set_detached_head(kit_dir, commit_hash):
    _check_hash(commit_hash)
    _write(_head_path(kit_dir), f"{commit_hash}\n")


def get_all_branches(kit_dir):
    return _list_refs(_heads_dir(kit_dir))


def branch_exists(kit_dir, branch_name):
    if not branch_name:
        return False
    return os.path.isfile(os.path.join(_heads_dir(kit_dir), *branch_name.split('/')))


def get_branch_commit(kit_dir, branch_name): # The commit a branch points to, or None if the branch doesn't exist
    branch_path = os.path.join(_heads_dir(kit_dir), *branch_name.split('/'))
    if not os.path.isfile(branch_path):
        return None
    return _read(branch_path) or None


def create_branch(kit_dir, branch_name, commit_hash):
    _check_name(branch_name)
    _check_hash(commit_hash)
    if branch_exists(kit_dir, branch_name):
        raise AlreadyExists(f"A branch named '{branch_name}' already exists.")
    _write(os.path.join(_heads_dir(kit_dir), *branch_name.split('/')), f"{commit_hash}\n")


def delete_branch(kit_dir, branch_name):
    _check_name(branch_name)
    if branch_name == get_current_branch(kit_dir):
        raise InvalidArgument(f"Cannot delete the branch '{branch_name}' which you are currently on.")
    if not branch_exists(kit_dir, branch_name):
        raise NotFound(f"Branch does not exist: {branch_name}")
    os.remove(os.path.join(_heads_dir(kit_dir), *branch_name.split('/')))


def get_all_tags(kit_dir):
    return _list_refs(_tags_dir(kit_dir))


def tag_exists(kit_dir, tag_name):
    if not tag_name:
        return False
    return os.path.isfile(os.path.join(_tags_dir(kit_dir), *tag_name.split('/')))


def get_tag_commit(kit_dir, tag_name):
    tag_path = os.path.join(_tags_dir(kit_dir), *tag_name.split('/'))
    if not os.path.isfile(tag_path):
        return None
    return _read(tag_path) or None


def create_tag(kit_dir, tag_name, commit_hash):
    _check_name(tag_name, 'Tag')
    _check_hash(commit_hash)
    if tag_exists(kit_dir, tag_name):
        raise AlreadyExists(f"tag '{tag_name}' already exists")
    _write(os.path.join(_tags_dir(kit_dir), *tag_name.split('/')), f"{commit_hash}\n")


def delete_tag(kit_dir, tag_name):
    _check_name(tag_name, 'Tag')
    if not tag_exists(kit_dir, tag_name):
        raise NotFound(f"tag '{tag_name}' not found.")
    os.remove(os.path.join(_tags_dir(kit_dir), *tag_name.split('/')))


def get_head_status(kit_dir): # Returns a user-friendly string describing HEAD state
    current_branch = get_current_branch(kit_dir)
    if current_branch:
        return f"On branch {current_branch}"
    head_commit = get_head_commit(kit_dir)
    if head_commit:
        return f"HEAD detached at {head_commit[:7]}"
    return "HEAD detached (no commits yet)"
