# The command: kit commit -m "<message>"
# What it does: Creates a permanent, uniquely identified snapshot (a commit object) of the currently staged changes.
# How it does: The engine overlays the staged entries on the HEAD snapshot, builds a hierarchical Merkle Tree from that flat list to get a single root hash, and hashes it with the parent commit, author and message into a new "commit" object. The current branch (or detached HEAD) is moved to the new commit and the index is emptied.
# What data structure it uses: Merkle Tree (to represent the project's file structure), Directed Acyclic Graph (DAG) (as each commit links to its parents, forming the history graph), Hash Table / Dictionary (the underlying object store)

import sys
from utils import config, errors
from utils.repository import Repository

def run(args):
    try:
        repo = Repository.find()
        author = args.author or config.get_author(repo.work_dir)
        commit_hash = repo.commit(args.message, author)
    except errors.NothingToCommit as e:
        print(e)
        sys.exit(1)
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    branch = repo.current_branch() or 'detached HEAD'
    print(f"[{branch} {commit_hash[:7]}] {args.message.splitlines()[0]}")
