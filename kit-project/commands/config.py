# The command: kit config <key> <value>
# What it does: A user-facing command to set a configuration key-value pair (e.g., user.name)
# How it does: It passes the key and value to `write_config` in `utils/config.py`, which handles the file I/O and parsing logic
# What data structure it uses: None directly, but it provides the interface to the underlying Map / Dictionary structure managed by `utils/config.py`

import sys
from utils import config as config_utils, errors
from utils.repository import find_repo_root

def run(args):
    try: # Set the configuration key-value pair
        config_utils.write_config(find_repo_root(), args.key, args.value)
        print(f"Set {args.key} to '{args.value}'")
    except errors.KitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
