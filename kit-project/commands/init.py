# The command: kit init
# What it does: Initializes a new, empty repository by creating the hidden `.kit` directory and its internal structure
# How it does: It creates the `objects`, `refs/heads` and `refs/tags` subdirectories, a `HEAD` file holding a symbolic reference to the default 'master' branch, and an empty index
# What data structure it uses: Tree (the file system directory structure is a tree). It also lays the foundation for a Hash Table (the object database) and a Directed Acyclic Graph (the commit history)

import os
import sys
from utils import errors
from utils.repository import Repository

def run(args):
    repo = Repository(getattr(args, 'directory', None) or os.getcwd())
    try:
        kit_dir = repo.init()
    except errors.AlreadyExists as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Initialized empty Kit repository in {kit_dir}{os.sep}")
