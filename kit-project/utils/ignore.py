# What it does: Implements the `.kitignore` functionality
# What data structure it uses: Set (to store the ignore patterns for efficient, near O(1) average time complexity lookups)

import os
from fnmatch import fnmatch

META_DIR = '.kit'
IGNORE_FILE = '.kitignore'


def get_ignored_patterns(repo_root):
    """
    Reads the .kitignore file and returns a set of glob patterns.
    """
    ignore_file = os.path.join(repo_root, IGNORE_FILE)
    patterns = {META_DIR, META_DIR + '/*'} # Always ignore the metadata directory

    if os.path.exists(ignore_file):
        with open(ignore_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    patterns.add(line)
    return patterns


def is_ignored(path, ignore_patterns): # Returns True if the '/'-separated repository path matches any ignore pattern
    for pattern in ignore_patterns:
        if fnmatch(path, pattern) or any(fnmatch(part, pattern) for part in path.split('/')):
            return True
    return False
