# The command: kit log
# What it does: Displays the commit history reachable from HEAD, newest first
# How it does: The engine walks the commit graph from HEAD through every parent link (depth-first, with a visited set) and sorts the collected commits by their committer timestamp
# What data structure it uses: It performs a Graph Traversal (depth-first, using a stack) on the Directed Acyclic Graph (DAG) formed by the commits

import sys
from utils import errors
from utils.repository import Repository

def run(args):
    try:
        repo = Repository.find()
        commits = repo.log()
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    if not commits:
        current_branch = repo.current_branch() or 'master'
        print(f"fatal: your current branch '{current_branch}' does not have any commits yet")
        return

    for commit in commits:
        print(f"commit {commit.sha1()}")
        if commit.author:
            print(f"Author: {commit.author}")
        if commit.committer:
            print(f"Committer: {commit.committer}")
        print()
        for line in commit.message.splitlines():
            print(f"    {line}")
        print()
