# The command: kit status
# What it does: Provides a summary of the repository state by comparing the HEAD commit, the index (staging area), and the working directory
# How it does: The engine builds three {path: hash} dictionaries and classifies every path into staged, unstaged and untracked buckets; this module only renders that report
# What data structure it uses: Hash Table / Dictionary (the three states), Lists (the buckets of the StatusReport)

import sys
from utils import errors, refs
from utils.repository import Repository

def run(args): # Prints the status report of the current repository
    try:
        repo = Repository.find()
        report = repo.status()
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    print(refs.get_head_status(repo.kit_dir))
    print()
    for line in format_status(report):
        print(line)

def format_status(report): # Returns the lines of the four status sections
    lines = []
    if report.has_staged:
        lines.append("Changes to be committed:")
        lines.append("  (use \"kit reset HEAD <file>...\" to unstage)")
        lines.extend(f"\tnew file:   {path}" for path in report.staged_added)
        lines.extend(f"\tmodified:   {path}" for path in report.staged_modified)
        lines.extend(f"\tdeleted:    {path}" for path in report.staged_deleted)
        lines.append("")

    if report.has_unstaged:
        lines.append("Changes not staged for commit:")
        lines.append("  (use \"kit add <file>...\" to update what will be committed)")
        lines.extend(f"\tmodified:   {path}" for path in report.unstaged_modified)
        lines.extend(f"\tdeleted:    {path}" for path in report.unstaged_deleted)
        lines.append("")

    if report.untracked:
        lines.append("Untracked files:")
        lines.append("  (use \"kit add <file>...\" to include in what will be committed)")
        lines.extend(f"\t{path}" for path in report.untracked)
        lines.append("")

    if report.is_clean:
        lines.append("nothing to commit, working tree clean")
    return lines
