# Shared pytest fixtures for Kit VCS tests

import pytest
import os
import sys
import shutil
import tempfile

# Add kit-project to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'kit-project'))

from utils.repository import Repository
from utils.store import ObjectStore
from utils.index import Index


AUTHOR = "Test User <test@example.com>"


def write_file(repo_root, rel_path, content):
    # Writes a working file, creating parent directories as needed
    file_path = os.path.join(repo_root, *rel_path.split('/'))
    os.makedirs(os.path.dirname(file_path), exist_ok=True)
    mode = 'wb' if isinstance(content, bytes) else 'w'
    with open(file_path, mode) as f:
        f.write(content)
    return file_path


def read_file(repo_root, rel_path):
    with open(os.path.join(repo_root, *rel_path.split('/')), 'r') as f:
        return f.read()


@pytest.fixture
def temp_dir():
    # Creates a temporary directory that is cleaned up after the test
    # Also saves/restores cwd to prevent issues when tests change directories
    original_dir = os.getcwd()
    tmp = tempfile.mkdtemp()
    yield tmp
    os.chdir(original_dir)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def repo(temp_dir):
    # An initialized, empty Kit repository
    repository = Repository(temp_dir)
    repository.init()
    return repository


@pytest.fixture
def temp_repo(repo):
    # An initialized repository with a configured identity; cwd is its root
    original_dir = os.getcwd()
    os.chdir(repo.work_dir)

    config_path = os.path.join(repo.kit_dir, 'config')
    with open(config_path, 'w') as f:
        f.write('[user]\n')
        f.write('name = Test User\n')
        f.write('email = test@example.com\n')

    yield repo.work_dir

    os.chdir(original_dir)


@pytest.fixture
def repo_with_commit(repo):
    # A repository with one committed file, README.md
    write_file(repo.work_dir, 'README.md', '# Test Project\n')
    repo.add('README.md')
    commit_hash = repo.commit('Initial commit', AUTHOR)
    return repo, commit_hash


@pytest.fixture
def repo_with_branches(repo_with_commit):
    # A repository with master and a feature branch at the same commit
    repo, initial_commit = repo_with_commit
    repo.create_branch('feature')
    return repo, initial_commit


@pytest.fixture
def object_store(temp_dir):
    return ObjectStore(os.path.join(temp_dir, 'objects'))


@pytest.fixture
def index_file(temp_dir):
    return Index(os.path.join(temp_dir, 'index'))


# Mock args object for command functions
class MockArgs:
    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, value)
