# The command: kit add <path>...
# What it does: Takes a snapshot of files from the working directory and stages them for the next commit by updating the index
# How it does: A path that resolves to the repository root stages every eligible file in the repository; any other path is staged directly (directories recursively, so `.` inside a subdirectory stages just that subdirectory). The engine hashes each file into a blob, skips files whose content is already staged or already committed, and rewrites the index once at the end
# What data structure it uses: Hash Table / Dictionary (the index in memory), List (the paths to add), and a Tree Traversal (os.walk over directories)

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

    failed = False
    for file_arg in args.files:
        path = os.path.abspath(file_arg)
        try:
            if path == repo.work_dir:
                report = repo.add_all()
                added = report.added
                for rel_path, message in report.errors:
                    print(f"error: failed to add '{rel_path}': {message}", file=sys.stderr)
                    failed = True
            else:
                added = repo.add(path)
        except errors.KitError as e:
            print(f"fatal: {e}", file=sys.stderr)
            failed = True
            continue
        except OSError as e:
            print(f"error: failed to add '{file_arg}': {e}", file=sys.stderr)
            failed = True
            continue
        for rel_path in added:
            print(f"add '{rel_path}'")

    if failed:
        sys.exit(1)
