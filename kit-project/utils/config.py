# What it does: Manages all read/write operations for the `.kit/config` file
# What data structure it uses: Map / Hash Table / Dictionary (the INI file format is a map of sections to key-value pairs, managed by Python's `configparser`)

import configparser
import os

from .errors import InvalidArgument, NotARepository
from .ignore import META_DIR


def get_config_path(repo_root):  # Returns the path to the config file within the repository
    return os.path.join(repo_root, META_DIR, 'config')


def read_config(repo_root): # Reads and returns the configuration as a ConfigParser object
    config = configparser.ConfigParser()
    if repo_root:
        config.read(get_config_path(repo_root))
    return config


def write_config(repo_root, key, value): # Sets a configuration key to a value and writes it to the config file
    if not repo_root:
        raise NotARepository("not a kit repository")

    try:
        section, option = key.split('.', 1)
    except ValueError:
        raise InvalidArgument("Invalid key format. Should be 'section.key'.")
    if not section or not option:
        raise InvalidArgument("Invalid key format. Should be 'section.key'.")

    config = read_config(repo_root)
    if not config.has_section(section):
        config.add_section(section)
    config.set(section, option, value)

    with open(get_config_path(repo_root), 'w') as configfile:
        config.write(configfile)


def get_value(repo_root, key, fallback=None):
    section, _, option = key.partition('.')
    return read_config(repo_root).get(section, option, fallback=fallback)


def get_user_config(repo_root): # Retrieves user.name and user.email from the config, or None if not set
    config = read_config(repo_root)
    user_name = config.get('user', 'name', fallback=None)
    user_email = config.get('user', 'email', fallback=None)
    return user_name, user_email


def get_author(repo_root): # Formats the configured identity as "Name <email>"
    user_name, user_email = get_user_config(repo_root)
    if not user_name or not user_email:
        raise InvalidArgument(
            "Author identity unknown. Run\n\n"
            "  kit config user.name \"Your Name\"\n"
            "  kit config user.email \"you@example.com\""
        )
    return f"{user_name} <{user_email}>"
