import argparse
from commands import (
    init, add, rm, commit, log, status, config,
    branch, checkout, reset, tag
)
# The main entry point for the Kit version control system
def build_parser():
    # The main parser
    parser = argparse.ArgumentParser(description="Kit: A simple version control system.")
    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    # Command: init
    init_parser = subparsers.add_parser("init", help="Initialize a new, empty repository.")
    init_parser.add_argument("directory", nargs="?", help="Where to create the repository (default: current directory).")
    init_parser.set_defaults(func=init.run)

    # Command: add
    add_parser = subparsers.add_parser("add", help="Add file contents to the index.")
    add_parser.add_argument("files", nargs="+", help="Files to add ('.' adds everything).")
    add_parser.set_defaults(func=add.run)

    # Command: rm
    rm_parser = subparsers.add_parser("rm", help="Remove files from the working tree and from the index.")
    rm_parser.add_argument("files", nargs="+", help="Files to remove.")
    rm_parser.add_argument("--cached", action="store_true", help="Only remove from the index.")
    rm_parser.add_argument("-f", "--force", action="store_true", help="Remove even if the file has local modifications.")
    rm_parser.set_defaults(func=rm.run)

    # Command: commit
    commit_parser = subparsers.add_parser("commit", help="Record changes to the repository.")
    commit_parser.add_argument("-m", "--message", required=True, help="Commit message.")
    commit_parser.add_argument("--author", help="Override the configured author, e.g. 'Name <email>'.")
    commit_parser.set_defaults(func=commit.run)

    # Command: log
    log_parser = subparsers.add_parser("log", help="Show commit logs.")
    log_parser.set_defaults(func=log.run)

    # Command: status
    status_parser = subparsers.add_parser("status", help="Show the working tree status.")
    status_parser.set_defaults(func=status.run)

    # Command: config
    config_parser = subparsers.add_parser("config", help="Set user name and email.")
    config_parser.add_argument("key", help="The configuration key (e.g., user.name).")
    config_parser.add_argument("value", help="The configuration value.")
    config_parser.set_defaults(func=config.run)

    # Command: branch
    branch_parser = subparsers.add_parser("branch", help="List, create or delete branches.")
    branch_parser.add_argument("name", nargs="?", help="The name of the branch to create.")
    branch_parser.add_argument("-d", "--delete", metavar="BRANCH", help="Delete a branch.")
    branch_parser.set_defaults(func=branch.run)

    # Command: checkout
    checkout_parser = subparsers.add_parser("checkout", help="Switch branches or check out a commit.")
    checkout_parser.add_argument("target", help="A branch name or a full commit hash.")
    checkout_parser.set_defaults(func=checkout.run)

    # Command: reset
    reset_parser = subparsers.add_parser("reset", help="Move HEAD to another commit.")
    mode_group = reset_parser.add_mutually_exclusive_group()
    mode_group.add_argument("--soft", dest="mode", action="store_const", const="soft", help="Reset only HEAD.")
    mode_group.add_argument("--mixed", dest="mode", action="store_const", const="mixed", help="Reset HEAD and index (default).")
    mode_group.add_argument("--hard", dest="mode", action="store_const", const="hard", help="Reset HEAD, index and working tree.")
    reset_parser.add_argument("commit", nargs="?", default="HEAD", help="Commit to reset to (hash, HEAD, HEAD~N, branch or tag).")
    reset_parser.set_defaults(func=reset.run, mode="mixed")

    # Command: tag
    tag_parser = subparsers.add_parser("tag", help="Create, list, show or delete tags.")
    tag_parser.add_argument("name", nargs="?", help="The tag to create, or 'show'.")
    tag_parser.add_argument("target", nargs="?", help="Commit to tag, or the tag to show.")
    tag_parser.add_argument("-d", "--delete", metavar="TAG", help="Delete a tag.")
    tag_parser.set_defaults(func=tag.run)

    return parser

def main(argv=None):
    parser = build_parser()
    # Parse the arguments
    args = parser.parse_args(argv)

    # If a command was specified, run its function
    if hasattr(args, 'func'):
        args.func(args)
    else:
        parser.print_help()

if __name__ == "__main__":
    main()
