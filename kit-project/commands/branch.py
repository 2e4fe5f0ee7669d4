# The command: kit branch [-d] [<branch-name>]
# What it does: Creates a new branch pointer to the current commit, deletes one with -d, or if no name is given, lists all existing branches
# How it does: To create a branch, it writes the current HEAD commit hash to a new file named `<branch-name>` inside `.kit/refs/heads`
# To list branches, it reads all the filenames in that directory and prints them, marking the current one with an asterisk
# What data structure it uses: Map / Dictionary (conceptually, the `refs/heads` directory maps branch names to commit hashes), List (to hold branch names for sorting and display)

import sys
from utils import errors
from utils.repository import Repository

def run(args):
#With no arguments, lists all branches.
#With an argument, creates (or with -d deletes) a branch.

    try:
        repo = Repository.find()
        if args.delete:
            repo.delete_branch(args.delete)
            print(f"Deleted branch '{args.delete}'")
        elif args.name:
            head_commit_hash = repo.create_branch(args.name)
            print(f"Branch '{args.name}' created at commit {head_commit_hash[:7]}")
        else:
            current_branch = repo.current_branch()
            for branch in repo.list_branches():
                if branch == current_branch:
                    print(f"* {branch}")
                else:
                    print(f"  {branch}")
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
