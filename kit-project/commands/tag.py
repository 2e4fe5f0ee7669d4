# The command: kit tag [-d] [<name>] | kit tag show <name>
# What it does: Creates a lightweight tag ref pointing to the current HEAD, deletes one, shows one, or lists existing tags.
# How it does: To create a tag, it gets the HEAD commit hash and writes it to a file in `.kit/refs/tags/<name>`. To list, it reads that directory.
# What data structure it uses: Files references (similar to branches).

import sys
from utils import errors
from utils.repository import Repository

def run(args):
    try:
        repo = Repository.find()
        if args.delete:
            repo.delete_tag(args.delete)
            print(f"Deleted tag '{args.delete}'")
        elif args.name == 'show' and args.target:
            show_tag(repo, args.target)
        elif args.name:
            commit_hash = repo.create_tag(args.name, args.target or 'HEAD')
            print(f"Created tag '{args.name}' at {commit_hash[:7]}")
        else:
            list_tags(repo)
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

def show_tag(repo, name):
    commit_hash, commit = repo.show_tag(name)
    print(f"tag {name}")
    print(f"commit {commit_hash}")
    if commit.author:
        print(f"Author: {commit.author}")
    print()
    print(commit.message)

def list_tags(repo):
    tags = repo.list_tags()
    if not tags:
        print("No tags yet")
        return
    for tag in tags:
        print(tag)
