# What it does: The repository engine. Reconciles the three views of a project (the HEAD commit, the staging index and the working directory): staging and unstaging files, building commits, computing status, walking history, and moving HEAD with checkout/reset
# How it does: Every mutating operation loads the index, works on it in memory and saves it in full at the end. Commits are built bottom-up into a Merkle tree of Tree objects. Anything that would overwrite the working directory first checks for uncommitted work and aborts before touching a single file
# What data structure it uses: Dictionary ({path: entry} flat listings of HEAD, index and working tree), Merkle Tree (directory trees keyed by content hash), Directed Acyclic Graph (commit history, walked depth-first with a stack and a visited set)

import os
import re
import stat
import time
from collections import namedtuple

from . import ignore, refs
from .diff import classify
from .errors import (
    AlreadyExists, EmptyRepository, InvalidArgument, InvalidTarget, LocalModifications,
    NoMatch, NoSuchCommit, NotARepository, NotFound, NothingToCommit, WouldLoseChanges,
)
from .index import Index, IndexEntry
from .objects import (
    Blob, Commit, Tree, TreeEntry, MODE_EXECUTABLE, MODE_FILE, from_hex, to_hex,
)
from .store import ObjectStore, SHA1_RE

META_DIR = ignore.META_DIR
RESET_MODES = ('soft', 'mixed', 'hard')
ANCESTOR_RE = re.compile(r'^(.+)~(\d*)$')

AddReport = namedtuple('AddReport', ['added', 'errors'])


def find_repo_root(path='.'): # Recursively searches for the .kit directory to find the repository root
    path = os.path.abspath(path)
    if os.path.isdir(os.path.join(path, META_DIR)):
        return path
    parent_path = os.path.dirname(path)
    if parent_path == path:
        return None
    return find_repo_root(parent_path)


def _dirname(path):
    return path.rpartition('/')[0]


def _basename(path):
    return path.rpartition('/')[2]


def _depth(directory):
    return directory.count('/') + 1 if directory else 0


class Repository:

    def __init__(self, work_dir):
        self.work_dir = os.path.abspath(work_dir)
        self.kit_dir = os.path.join(self.work_dir, META_DIR)
        self.store = ObjectStore(os.path.join(self.kit_dir, 'objects'))
        self.index = Index(os.path.join(self.kit_dir, 'index'))

    @classmethod
    def find(cls, path='.'): # Opens the repository containing `path`
        repo_root = find_repo_root(path)
        if not repo_root:
            raise NotARepository("not a kit repository (or any of the parent directories): .kit")
        return cls(repo_root)

    def is_repository(self):
        return os.path.isdir(self.kit_dir)

    def init(self):
        if os.path.exists(self.kit_dir):
            raise AlreadyExists(f"Repository already initialized in {self.kit_dir}")

        os.makedirs(os.path.join(self.kit_dir, 'objects'))
        os.makedirs(os.path.join(self.kit_dir, 'refs', 'heads'))
        os.makedirs(os.path.join(self.kit_dir, 'refs', 'tags'))
        with open(os.path.join(self.kit_dir, 'HEAD'), 'w') as f:
            f.write('ref: refs/heads/master\n')

        self.index.clear()
        self.index.save()
        return self.kit_dir

    # Paths

    def normalize_path(self, path):
        """
        Turns `path` (absolute, or relative to the working root) into a
        '/'-separated repository path. The working root itself is ''.
        """
        if path is None or not str(path).strip():
            raise InvalidArgument("File path cannot be empty")
        abs_path = os.path.abspath(os.path.join(self.work_dir, path))
        rel_path = os.path.relpath(abs_path, self.work_dir)
        if rel_path == os.pardir or rel_path.startswith(os.pardir + os.sep):
            raise InvalidArgument(f"'{path}' is outside repository at '{self.work_dir}'")
        if rel_path == os.curdir:
            return ''
        return rel_path.replace(os.sep, '/')

    def _abs(self, rel_path):
        return os.path.join(self.work_dir, *rel_path.split('/'))

    @staticmethod
    def _is_meta(rel_path):
        return rel_path == META_DIR or rel_path.startswith(META_DIR + '/')

    def _walk_working_files(self, top=None, tracked=()): # Yields every tracked-eligible file below `top`, in sorted order
        top = top or self.work_dir
        ignore_patterns = ignore.get_ignored_patterns(self.work_dir)
        for root, dirs, files in os.walk(top):
            if root == self.work_dir and META_DIR in dirs:
                dirs.remove(META_DIR)
            dirs.sort()
            for name in sorted(files):
                file_path = os.path.join(root, name)
                rel_path = os.path.relpath(file_path, self.work_dir).replace(os.sep, '/')
                if not os.path.isfile(file_path):
                    continue
                # Ignore rules only hide paths that neither HEAD nor the index tracks
                if rel_path not in tracked and ignore.is_ignored(rel_path, ignore_patterns):
                    continue
                yield rel_path

    def _prune_empty_dirs(self, directory): # Removes `directory` and its parents while they are empty
        while (directory != self.work_dir and directory.startswith(self.work_dir + os.sep)
               and os.path.isdir(directory) and not os.listdir(directory)):
            os.rmdir(directory)
            directory = os.path.dirname(directory)

    # Snapshots

    @staticmethod
    def _hash_file(file_path):
        with open(file_path, 'rb') as f:
            return Blob(f.read()).digest()

    def _is_modified(self, entry, file_path): # Stat check first, content hash to confirm
        if not os.path.isfile(file_path):
            return True
        if entry.stat_matches(file_path):
            return False
        return self._hash_file(file_path) != entry.sha

    def head_commit(self):
        return refs.get_head_commit(self.kit_dir)

    def commit_files(self, commit_hash):
        """
        Flattens the tree of a commit into {path: TreeEntry}, where each
        entry's name is the full repository path.
        """
        if not commit_hash:
            return {}
        commit = self.store.load_typed(commit_hash, Commit)
        files = {}
        if commit.tree is not None:
            self._collect_tree(to_hex(commit.tree), '', files)
        return files

    def _collect_tree(self, tree_sha, path_prefix, files):
        tree = self.store.load_typed(tree_sha, Tree)
        for entry in tree.entries:
            current_path = f'{path_prefix}/{entry.name}' if path_prefix else entry.name
            if entry.is_blob:
                files[current_path] = TreeEntry(entry.mode, entry.sha, current_path)
            elif entry.is_tree:
                self._collect_tree(entry.sha1(), current_path, files)

    def head_files(self):
        return self.commit_files(self.head_commit())

    def _tracked_paths(self, head_files): # Paths known to HEAD or the loaded index
        return set(head_files) | set(self.index.entries)

    def working_files(self, tracked=()): # {path: sha} of every tracked-eligible working file, hashed but not stored
        working = {}
        for rel_path in self._walk_working_files(tracked=tracked):
            try:
                working[rel_path] = self._hash_file(self._abs(rel_path))
            except FileNotFoundError:
                continue # removed while walking
        return working

    # Staging

    def add(self, path):
        """
        Stages a file, or every file below a directory. Returns the list of
        paths whose index entry changed.
        """
        self.index.load()
        rel_path = self.normalize_path(path)
        if self._is_meta(rel_path):
            raise InvalidArgument(f"'{path}' is inside the repository metadata directory")

        file_path = self._abs(rel_path) if rel_path else self.work_dir
        if not os.path.exists(file_path):
            raise NoMatch(f"pathspec '{path}' did not match any files")

        head_files = self.head_files()
        tracked = self._tracked_paths(head_files)
        if os.path.isdir(file_path):
            candidates = list(self._walk_working_files(file_path, tracked))
        elif rel_path not in tracked and ignore.is_ignored(rel_path, ignore.get_ignored_patterns(self.work_dir)):
            candidates = []
        else:
            candidates = [rel_path]

        added = [rel for rel in candidates if self._add_file(rel, head_files)]
        self.index.save()
        return added

    def add_all(self):
        """
        Stages every tracked-eligible file in the working directory. A file
        that cannot be read is recorded in the report and skipped.
        """
        self.index.load()
        head_files = self.head_files()
        added, errors = [], []
        for rel_path in self._walk_working_files(tracked=self._tracked_paths(head_files)):
            try:
                if self._add_file(rel_path, head_files):
                    added.append(rel_path)
            except OSError as e:
                errors.append((rel_path, str(e)))
        self.index.save()
        return AddReport(added, errors)

    def _add_file(self, rel_path, head_files):
        file_path = self._abs(rel_path)
        with open(file_path, 'rb') as f:
            blob = Blob(f.read())
        sha = blob.digest()

        existing_entry = self.index.get(rel_path)
        if existing_entry is not None and existing_entry.sha == sha:
            return False
        head_entry = head_files.get(rel_path)
        if existing_entry is None and head_entry is not None and head_entry.sha == sha:
            return False

        self.store.store(blob)
        self.index.add(IndexEntry.from_file(rel_path, sha, file_path))
        return True

    def remove(self, path, cached=False, force=False):
        """
        Removes a path from the next commit. Unless `cached`, the working file
        is deleted too. Unless `force`, a file whose working content differs
        from what was staged (or committed) is refused.
        """
        self.index.load()
        rel_path = self.normalize_path(path)
        if not rel_path or self._is_meta(rel_path):
            raise InvalidArgument(f"Cannot remove '{path}'")

        file_path = self._abs(rel_path)
        index_entry = self.index.get(rel_path)
        in_working = os.path.isfile(file_path)
        head_entry = self.head_files().get(rel_path)

        if index_entry is None and not in_working and head_entry is None:
            raise NoMatch(f"pathspec '{path}' did not match any files")

        if not force and in_working:
            if index_entry is not None and not index_entry.is_tombstone:
                modified = self._is_modified(index_entry, file_path)
            elif index_entry is None and head_entry is not None:
                modified = self._hash_file(file_path) != head_entry.sha
            else:
                modified = False
            if modified:
                raise LocalModifications(
                    f"the following file has local modifications:\n    {rel_path}\n"
                    "(use --force to force removal)"
                )

        if not cached and in_working:
            os.remove(file_path)
            self._prune_empty_dirs(os.path.dirname(file_path))

        if head_entry is not None and not cached:
            self.index.add(IndexEntry.tombstone(rel_path))
        else:
            self.index.remove(rel_path)
        self.index.save()
        return rel_path

    # Committing

    def _effective_files(self, head_files): # HEAD listing overlaid with the staged entries, tombstones removed
        files = dict(head_files)
        for entry in self.index.get_entries():
            if entry.is_tombstone:
                files.pop(entry.path, None)
            else:
                mode = MODE_EXECUTABLE if entry.is_executable else MODE_FILE
                files[entry.path] = TreeEntry(mode, entry.sha, entry.path)
        return files

    def write_tree(self, files):
        """
        Builds and stores the Tree objects for a flat {path: TreeEntry}
        listing and returns the raw hash of the root tree.

        Files are grouped by their directory. Every ancestor directory gets a
        (possibly file-less) group of its own, and directories are built
        deepest first, so each subtree hash exists before its parent needs it.
        """
        entries_by_dir = {'': []}
        for path in sorted(files):
            entries_by_dir.setdefault(_dirname(path), []).append(files[path])

        for directory in list(entries_by_dir):
            parent = directory
            while parent:
                parent = _dirname(parent)
                entries_by_dir.setdefault(parent, [])

        subdirs = {}
        for directory in entries_by_dir:
            if directory:
                subdirs.setdefault(_dirname(directory), []).append(directory)

        tree_hashes = {}
        for directory in sorted(entries_by_dir, key=_depth, reverse=True):
            tree = Tree(
                TreeEntry(MODE_EXECUTABLE if entry.mode == MODE_EXECUTABLE else MODE_FILE,
                          entry.sha, _basename(entry.name))
                for entry in entries_by_dir[directory]
            )
            for subdir in subdirs.get(directory, []):
                tree = tree.add_directory(_basename(subdir), tree_hashes[subdir])
            self.store.store(tree)
            tree_hashes[directory] = tree.digest()

        return tree_hashes['']

    def commit(self, message, author):
        """
        Records the staged changes as a new commit on top of HEAD, moves HEAD
        (or the current branch) to it and empties the index. Returns the hex
        hash of the new commit.
        """
        self.index.load()
        if not message or not message.strip():
            raise InvalidArgument("Commit message cannot be empty")
        if not author or not author.strip():
            raise InvalidArgument("Author cannot be empty")
        if self.index.is_empty():
            raise NothingToCommit("nothing to commit, working tree clean")

        parent_hash = self.head_commit()
        tree_hash = self.write_tree(self._effective_files(self.commit_files(parent_hash)))

        signature = f"{author} {int(time.time())} +0000"
        parents = [from_hex(parent_hash)] if parent_hash else []
        commit = Commit(tree_hash, parents, signature, signature, message)
        commit_hash = self.store.store(commit)

        refs.update_head_commit(self.kit_dir, commit_hash)

        self.index.clear()
        self.index.save()
        return commit_hash

    # Inspection

    def status(self):
        self.index.load()
        head_files = self.head_files()
        head = {path: entry.sha for path, entry in head_files.items()}
        removed = [entry.path for entry in self.index.get_entries() if entry.is_tombstone]
        working = self.working_files(self._tracked_paths(head_files))
        return classify(head, self.index.hashes(), working, removed)

    def log(self):
        """
        Every commit reachable from HEAD through any parent, newest first by
        committer (or author) time. This is a timestamp order, not a
        topological one.
        """
        head_hash = self.head_commit()
        if not head_hash:
            return []

        commits = []
        visited = set()
        stack = [head_hash]
        while stack:
            current_hash = stack.pop()
            if current_hash in visited or not self.store.exists(current_hash):
                continue
            visited.add(current_hash)

            commit = self.store.load_typed(current_hash, Commit)
            commits.append(commit)
            # Reversed so that the first parent is visited first
            for parent in reversed(commit.parents):
                if to_hex(parent) not in visited:
                    stack.append(to_hex(parent))

        commits.sort(key=lambda c: c.timestamp, reverse=True)
        return commits

    # Moving HEAD

    def has_uncommitted_changes(self, head_files=None):
        """
        True if replacing the working directory would lose work: a staged
        entry whose file is missing or changed, a staged change against HEAD,
        or a HEAD-tracked file that was modified or deleted. Untracked files
        don't count.
        """
        if head_files is None:
            head_files = self.head_files()

        for entry in self.index.get_entries():
            if entry.is_tombstone:
                if entry.path in head_files:
                    return True
                continue
            if self._is_modified(entry, self._abs(entry.path)):
                return True
            head_entry = head_files.get(entry.path)
            if head_entry is None or head_entry.sha != entry.sha:
                return True

        for path, head_entry in head_files.items():
            if path in self.index:
                continue
            file_path = self._abs(path)
            if not os.path.isfile(file_path) or self._hash_file(file_path) != head_entry.sha:
                return True
        return False

    def _check_untracked_overwrites(self, old_files, new_files):
        """
        Raises WouldLoseChanges if writing `new_files` would clobber a working
        file that neither the current HEAD nor the index knows about. Identical
        content is not a loss.
        """
        for path, entry in new_files.items():
            if path in old_files or path in self.index:
                continue
            file_path = self._abs(path)
            if os.path.isfile(file_path):
                if self._hash_file(file_path) != entry.sha:
                    raise WouldLoseChanges(
                        f"The following untracked working tree file would be overwritten:\n    {path}\n"
                        "Please move or remove it first."
                    )
            elif os.path.isdir(file_path):
                for root, _, files in os.walk(file_path):
                    for name in files:
                        rel_path = os.path.relpath(os.path.join(root, name), self.work_dir).replace(os.sep, '/')
                        if rel_path not in old_files:
                            raise WouldLoseChanges(
                                f"The untracked directory '{path}' would be replaced by a file. "
                                "Please move or remove it first."
                            )

            parent = _dirname(path)
            while parent:
                if parent not in old_files and os.path.isfile(self._abs(parent)):
                    raise WouldLoseChanges(
                        f"The untracked file '{parent}' would be replaced by a directory. "
                        "Please move or remove it first."
                    )
                parent = _dirname(parent)

    def _replace_working_tree(self, old_files, new_files):
        self._check_untracked_overwrites(old_files, new_files)

        # Read every target blob before deleting anything
        contents = {
            path: self.store.load_typed(entry.sha1(), Blob).data
            for path, entry in new_files.items()
        }

        for path in sorted(old_files):
            file_path = self._abs(path)
            if os.path.isfile(file_path):
                os.remove(file_path)
                self._prune_empty_dirs(os.path.dirname(file_path))

        for path in sorted(new_files):
            file_path = self._abs(path)
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            with open(file_path, 'wb') as f:
                f.write(contents[path])
            if new_files[path].mode == MODE_EXECUTABLE:
                st = os.stat(file_path)
                os.chmod(file_path, st.st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def _index_entry_for(self, path, tree_entry): # Index entry for a committed file, with stat data when the working file matches
        file_path = self._abs(path)
        mode = int(tree_entry.mode, 8)
        if os.path.isfile(file_path) and self._hash_file(file_path) == tree_entry.sha:
            return IndexEntry.from_file(path, tree_entry.sha, file_path)._replace(mode=mode)
        _, content = self.store.read_raw(tree_entry.sha1())
        return IndexEntry(path, tree_entry.sha, mode, len(content) & 0xFFFFFFFF, 0, 0)

    def checkout(self, target):
        """
        Switches to a branch (HEAD becomes symbolic) or to a commit hash
        (HEAD becomes detached), rewriting the working directory to match.
        """
        self.index.load()
        branch = None
        if refs.branch_exists(self.kit_dir, target):
            branch = target
            commit_hash = refs.get_branch_commit(self.kit_dir, target)
            if not commit_hash:
                raise InvalidTarget(f"branch '{target}' does not point to a commit")
        elif target and SHA1_RE.match(target) and self.store.exists(target):
            commit_hash = target.lower()
        else:
            raise InvalidTarget(f"pathspec '{target}' did not match any branch or commit known to kit")

        if not isinstance(self.store.load(commit_hash), Commit):
            raise InvalidTarget(f"'{target}' is not a commit")

        head_files = self.head_files()
        if self.has_uncommitted_changes(head_files):
            raise WouldLoseChanges("Your local changes would be lost. Please commit or stash them first.")

        self._replace_working_tree(head_files, self.commit_files(commit_hash))
        self.index.clear()
        self.index.save()

        if branch:
            refs.set_head_branch(self.kit_dir, branch)
        else:
            refs.set_detached_head(self.kit_dir, commit_hash)
        return commit_hash

    def resolve_commit(self, ref):
        """
        Resolves `HEAD`, `<ref>~N`, a full 40-hex hash, a branch or a tag to
        a commit hash.
        """
        head_hash = self.head_commit()
        if head_hash is None:
            raise EmptyRepository("HEAD does not point to a commit yet")
        if ref is None or ref == 'HEAD':
            return head_hash

        match = ANCESTOR_RE.match(ref)
        if match:
            commit_hash = self.resolve_commit(match.group(1))
            for _ in range(int(match.group(2) or 1)):
                commit = self.store.load_typed(commit_hash, Commit)
                if not commit.parents:
                    raise NoSuchCommit(f"'{ref}' goes past the root commit")
                commit_hash = to_hex(commit.parents[0])
            return commit_hash

        if SHA1_RE.match(ref):
            if self.store.exists(ref) and isinstance(self.store.load(ref), Commit):
                return ref.lower()
            raise NoSuchCommit(f"unknown revision '{ref}'")

        if refs.branch_exists(self.kit_dir, ref):
            commit_hash = refs.get_branch_commit(self.kit_dir, ref)
        elif refs.tag_exists(self.kit_dir, ref):
            commit_hash = refs.get_tag_commit(self.kit_dir, ref)
        else:
            commit_hash = None
        if not commit_hash:
            raise NoSuchCommit(f"unknown revision '{ref}'")
        return commit_hash

    def reset(self, mode='mixed', ref='HEAD'):
        """
        Moves HEAD (or the current branch) to `ref`.

        soft:  HEAD only.
        mixed: HEAD, and the index becomes the target tree's listing.
        hard:  as mixed, and the working directory is rewritten to match.
        """
        mode = (mode or 'mixed').lstrip('-')
        if mode not in RESET_MODES:
            raise InvalidArgument(f"Unknown reset mode '--{mode}' (use --soft, --mixed or --hard)")

        self.index.load()
        target_hash = self.resolve_commit(ref)
        target_files = self.commit_files(target_hash)

        if mode == 'hard':
            head_files = self.head_files()
            if self.has_uncommitted_changes(head_files):
                raise WouldLoseChanges("Your local changes would be lost. Please commit or stash them first.")
            self._replace_working_tree(head_files, target_files)

        refs.update_head_commit(self.kit_dir, target_hash)

        if mode in ('mixed', 'hard'):
            self.index.clear()
            for path, entry in target_files.items():
                self.index.add(self._index_entry_for(path, entry))
            self.index.save()
        return target_hash

    # Branches and tags

    def current_branch(self):
        return refs.get_current_branch(self.kit_dir)

    def list_branches(self):
        return refs.get_all_branches(self.kit_dir)

    def create_branch(self, name):
        head_hash = self.head_commit()
        if head_hash is None:
            raise EmptyRepository("Cannot create branch - no commits yet")
        refs.create_branch(self.kit_dir, name, head_hash)
        return head_hash

    def delete_branch(self, name):
        refs.delete_branch(self.kit_dir, name)

    def list_tags(self):
        return refs.get_all_tags(self.kit_dir)

    def create_tag(self, name, ref='HEAD'):
        commit_hash = self.resolve_commit(ref)
        refs.create_tag(self.kit_dir, name, commit_hash)
        return commit_hash

    def delete_tag(self, name):
        refs.delete_tag(self.kit_dir, name)

    def show_tag(self, name): # Returns (hash, Commit) for a tag
        commit_hash = refs.get_tag_commit(self.kit_dir, name)
        if not commit_hash:
            raise NotFound(f"tag '{name}' not found.")
        return commit_hash, self.store.load_typed(commit_hash, Commit)
