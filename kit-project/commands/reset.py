# The command: kit reset [--soft | --mixed | --hard] [<commit>]
# What it does: Moves the current branch (or detached HEAD) to another commit
# How it does: The target is resolved from a hash, HEAD, HEAD~N, a branch or a tag. --soft moves HEAD only; --mixed (the default) also reloads the index from the target tree; --hard also rewrites the working directory, and refuses to run over uncommitted work
# What data structure it uses: Linked List traversal (following first-parent links for HEAD~N), Dictionary (the target tree's flat listing becomes the index)

import sys
from utils import errors
from utils.repository import Repository

def run(args):
    try:
        repo = Repository.find()
        commit_hash = repo.reset(args.mode, args.commit)
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.mode == 'hard':
        commit = repo.store.load(commit_hash)
        print(f"HEAD is now at {commit_hash[:7]} {commit.message.splitlines()[0] if commit.message else ''}")
    else:
        print(f"HEAD is now at {commit_hash[:7]}")
