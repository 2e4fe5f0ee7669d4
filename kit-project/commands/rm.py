# The command: kit rm [--cached] [-f] <file>...
# What it does: Removes files from the working directory and stages their removal, or with --cached only unstages them
# How it does: For each path the engine refuses to touch a file with unstaged edits (unless -f), deletes the working copy (unless --cached), and records a tombstone entry in the index for files that exist in HEAD so the next commit drops them
# What data structure it uses: Hash Table / Dictionary (the index), with a tombstone record as a "deleted" marker

import os
import sys
from utils import errors
from utils.repository import Repository

def run(args):
    try:
        repo = Repository.find()
    except errors.NotARepository as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)

    for file_arg in args.files:
        try:
            path = repo.remove(os.path.abspath(file_arg), cached=args.cached, force=args.force)
        except (errors.KitError, OSError) as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)
        if args.cached:
            print(f"removed from index: {path}")
        else:
            print(f"rm '{path}'")
