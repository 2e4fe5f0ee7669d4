# What it does: Classifies every path by comparing three snapshots of the repository: HEAD, the index and the working directory
# How it does: Each snapshot is a {path: hash} dictionary. Every path in the union of the three is looked up in each one, and its present/absent/equal pattern decides which status buckets it falls into (a path can be in both a staged and an unstaged bucket)
# What data structure it uses: Dictionary (the three states, O(1) lookups), Set (union of paths), List (sorted buckets in the report)

from collections import namedtuple


class StatusReport(namedtuple('StatusReport', [
    'staged_added', 'staged_modified', 'staged_deleted',
    'unstaged_modified', 'unstaged_deleted', 'untracked',
])):
    __slots__ = ()

    @property
    def has_staged(self):
        return bool(self.staged_added or self.staged_modified or self.staged_deleted)

    @property
    def has_unstaged(self):
        return bool(self.unstaged_modified or self.unstaged_deleted)

    @property
    def is_clean(self):
        return not (self.has_staged or self.has_unstaged or self.untracked)


def classify(head, index, working, removed=()):
    """
    Builds a StatusReport from the HEAD, index and working states.

    `removed` holds paths with a tombstone in the index: they are staged
    deletions, and a working file at the same path shows up as untracked.
    """
    removed = set(removed)
    staged_added, staged_modified, staged_deleted = [], [], []
    unstaged_modified, unstaged_deleted, untracked = [], [], []

    for path in sorted(set(head) | set(index) | set(working) | removed):
        h = head.get(path)
        i = index.get(path)
        w = working.get(path)

        if path in removed and path not in index:
            if h is not None:
                staged_deleted.append(path)
            if w is not None:
                untracked.append(path)
            continue

        if h is None:
            if i is not None:
                staged_added.append(path)
                if w is not None and w != i:
                    unstaged_modified.append(path)
            elif w is not None:
                untracked.append(path)
            continue

        if i is None and w is None:
            staged_deleted.append(path)
        elif w is None:
            if i == h:
                unstaged_deleted.append(path)
            else:
                staged_deleted.append(path)
        elif i is None:
            if w != h:
                unstaged_modified.append(path)
        else:
            if i != h:
                staged_modified.append(path)
            if w != i:
                unstaged_modified.append(path)

    return StatusReport(staged_added, staged_modified, staged_deleted,
                        unstaged_modified, unstaged_deleted, untracked)
