# The command: kit checkout <branch-name> | <commit-hash>
# What it does: Switches the working directory to another branch or to a specific commit
# How it does:
#   - Refuses to run if the index or the working directory holds uncommitted work.
#   - Removes the files tracked by the current HEAD, writes out every blob of the target commit's tree, and empties the index.
#   - For a branch, `.kit/HEAD` becomes a symbolic ref; for a commit hash, HEAD is detached.
# What data structure it uses: Dictionary (flat {path: entry} listings of both commits), Hash Table (object store lookup).

import sys
from utils import errors
from utils.repository import Repository

def run(args):
    try:
        repo = Repository.find()
        if args.target == repo.current_branch():
            print(f"Already on '{args.target}'")
            return
        commit_hash = repo.checkout(args.target)
    except errors.WouldLoseChanges as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    if repo.current_branch() == args.target:
        print(f"Switched to branch '{args.target}'")
    else:
        print("Note: switching to detached HEAD state")
        print(f"HEAD is now at {commit_hash[:7]}")
