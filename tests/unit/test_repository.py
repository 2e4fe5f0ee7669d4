# Unit tests for utils/repository.py

import pytest
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'kit-project'))

from conftest import AUTHOR, write_file, read_file
from utils import errors, refs
from utils.objects import Blob, Commit, Tree, MODE_DIRECTORY, MODE_EXECUTABLE, MODE_FILE, to_hex
from utils.repository import Repository, find_repo_root


class TestFindRepoRoot:
    # Tests for find_repo_root() and Repository.find()

    def test_finds_repo_in_current_dir(self, repo):
        assert find_repo_root(repo.work_dir) == repo.work_dir

    def test_finds_repo_in_subdirectory(self, repo):
        subdir = os.path.join(repo.work_dir, 'src', 'deep', 'nested')
        os.makedirs(subdir)
        os.chdir(subdir)

        result = find_repo_root()
        assert os.path.realpath(result) == os.path.realpath(repo.work_dir)

    def test_returns_none_when_not_in_repo(self, temp_dir):
        assert find_repo_root(temp_dir) is None
        with pytest.raises(errors.NotARepository):
            Repository.find(temp_dir)


class TestInit:
    # Tests for Repository.init()

    def test_creates_layout(self, repo):
        assert os.path.isdir(os.path.join(repo.kit_dir, 'objects'))
        assert os.path.isdir(os.path.join(repo.kit_dir, 'refs', 'heads'))
        assert os.path.isdir(os.path.join(repo.kit_dir, 'refs', 'tags'))
        with open(os.path.join(repo.kit_dir, 'HEAD')) as f:
            assert f.read() == 'ref: refs/heads/master\n'
        assert os.path.isfile(os.path.join(repo.kit_dir, 'index'))
        assert repo.is_repository()

    def test_reinit_fails(self, repo):
        with pytest.raises(errors.AlreadyExists):
            Repository(repo.work_dir).init()


class TestNormalizePath:

    def test_relative_and_absolute(self, repo):
        assert repo.normalize_path('a/b.txt') == 'a/b.txt'
        assert repo.normalize_path(os.path.join(repo.work_dir, 'a', 'b.txt')) == 'a/b.txt'
        assert repo.normalize_path('.') == ''

    def test_outside_repository(self, repo):
        with pytest.raises(errors.InvalidArgument):
            repo.normalize_path('../elsewhere.txt')

    def test_empty(self, repo):
        with pytest.raises(errors.InvalidArgument):
            repo.normalize_path('  ')


class TestAdd:
    # Tests for Repository.add() / add_all()

    def test_add_stores_blob_and_index_entry(self, repo):
        file_path = write_file(repo.work_dir, 'a.txt', 'x')

        assert repo.add('a.txt') == ['a.txt']

        repo.index.load()
        entry = repo.index.get('a.txt')
        assert entry.sha == Blob(b'x').digest()
        assert entry.size == 1
        assert entry.stat_matches(file_path)
        assert repo.store.exists(Blob(b'x').sha1())

    def test_add_directory_recurses(self, repo):
        write_file(repo.work_dir, 'src/main/A.java', 'class A {}')
        write_file(repo.work_dir, 'src/B.java', 'class B {}')
        write_file(repo.work_dir, 'other.txt', 'no')

        assert repo.add('src') == ['src/B.java', 'src/main/A.java']

    def test_add_identical_content_is_skipped(self, repo):
        write_file(repo.work_dir, 'a.txt', 'x')
        repo.add('a.txt')
        assert repo.add('a.txt') == []

    def test_add_content_already_in_head_is_skipped(self, repo_with_commit):
        repo, _ = repo_with_commit
        os.utime(os.path.join(repo.work_dir, 'README.md'), ns=(1, 1))
        assert repo.add('README.md') == []
        repo.index.load()
        assert repo.index.is_empty()

    def test_reverting_to_head_content_restages_it(self, repo_with_commit):
        repo, _ = repo_with_commit
        write_file(repo.work_dir, 'README.md', 'changed')
        repo.add('README.md')
        write_file(repo.work_dir, 'README.md', '# Test Project\n')

        assert repo.add('README.md') == ['README.md']
        assert repo.status().is_clean

    def test_executable_mode_recorded(self, repo):
        file_path = write_file(repo.work_dir, 'run.sh', '#!/bin/sh\n')
        os.chmod(file_path, 0o755)
        repo.add('run.sh')
        repo.index.load()
        assert repo.index.get('run.sh').is_executable

    def test_add_missing_file(self, repo):
        with pytest.raises(errors.NoMatch):
            repo.add('nope.txt')

    def test_add_metadata_path_rejected(self, repo):
        with pytest.raises(errors.InvalidArgument):
            repo.add('.kit/HEAD')

    def test_ignored_files_are_skipped(self, repo):
        write_file(repo.work_dir, '.kitignore', '*.log\nbuild\n')
        write_file(repo.work_dir, 'debug.log', 'noise')
        write_file(repo.work_dir, 'build/out.bin', 'bin')
        write_file(repo.work_dir, 'keep.txt', 'keep')

        assert repo.add('debug.log') == []
        report = repo.add_all()
        assert report.added == ['.kitignore', 'keep.txt']
        assert report.errors == []

    def test_ignore_rules_do_not_hide_tracked_files(self, repo):
        write_file(repo.work_dir, 'build.log', 'first run')
        repo.add('build.log')
        repo.commit('add log', AUTHOR)
        write_file(repo.work_dir, '.kitignore', '*.log\n')
        repo.add('.kitignore')
        repo.commit('ignore logs', AUTHOR)

        write_file(repo.work_dir, 'other.log', 'untracked noise')
        assert repo.status().is_clean

        write_file(repo.work_dir, 'build.log', 'second run, longer')
        assert repo.status().unstaged_modified == ['build.log']
        assert repo.add('build.log') == ['build.log']
        assert repo.status().staged_modified == ['build.log']

    def test_add_all_stages_tracked_ignored_files(self, repo):
        write_file(repo.work_dir, 'app.log', 'v1')
        repo.add('app.log')
        write_file(repo.work_dir, '.kitignore', '*.log\n')
        write_file(repo.work_dir, 'app.log', 'v2 edited')

        report = repo.add_all()
        assert report.added == ['.kitignore', 'app.log']

    def test_add_all_reports_unreadable_files(self, repo, monkeypatch):
        write_file(repo.work_dir, 'good.txt', 'ok')
        write_file(repo.work_dir, 'bad.txt', 'nope')
        original = repo._add_file

        def flaky_add(rel_path, head_files):
            if rel_path == 'bad.txt':
                raise PermissionError(13, 'Permission denied')
            return original(rel_path, head_files)

        monkeypatch.setattr(repo, '_add_file', flaky_add)
        report = repo.add_all()

        assert report.added == ['good.txt']
        assert [path for path, _ in report.errors] == ['bad.txt']
        repo.index.load()
        assert 'good.txt' in repo.index


class TestTreeFromIndex:
    # Tests for Repository.write_tree() via commit

    def test_nested_directories(self, repo):
        write_file(repo.work_dir, 'src/main/A', 'a')
        write_file(repo.work_dir, 'README', 'readme')
        repo.add_all()
        commit_hash = repo.commit('nested', AUTHOR)

        commit = repo.store.load(commit_hash)
        root = repo.store.load(to_hex(commit.tree))
        assert [(e.mode, e.name) for e in root.entries] == [(MODE_FILE, 'README'), (MODE_DIRECTORY, 'src')]

        src = repo.store.load(root.get('src').sha1())
        assert [(e.mode, e.name) for e in src.entries] == [(MODE_DIRECTORY, 'main')]

        main = repo.store.load(src.get('main').sha1())
        assert main.get('A').sha == Blob(b'a').digest()

    def test_tree_is_deterministic(self, repo):
        write_file(repo.work_dir, 'b/x', '1')
        write_file(repo.work_dir, 'a', '2')
        repo.add_all()
        files = repo._effective_files({})

        first = repo.write_tree(files)
        second = repo.write_tree(dict(reversed(list(files.items()))))
        assert first == second
        assert sorted(files) == ['a', 'b/x']

    def test_empty_listing_gives_empty_root(self, repo):
        root_hash = repo.write_tree({})
        assert repo.store.load(to_hex(root_hash)) == Tree()

    def test_executable_mode_in_tree(self, repo):
        file_path = write_file(repo.work_dir, 'bin/run', 'go')
        os.chmod(file_path, 0o755)
        repo.add_all()
        repo.commit('exec', AUTHOR)
        assert repo.head_files()['bin/run'].mode == MODE_EXECUTABLE

    def test_tombstones_are_left_out(self, repo_with_commit):
        repo, _ = repo_with_commit
        write_file(repo.work_dir, 'other.txt', 'o')
        repo.add('other.txt')
        repo.remove('README.md')
        repo.commit('drop readme', AUTHOR)
        assert sorted(repo.head_files()) == ['other.txt']


class TestCommit:
    # Tests for Repository.commit()

    def test_commit_records_parent_and_clears_index(self, repo_with_commit):
        repo, first = repo_with_commit
        write_file(repo.work_dir, 'README.md', 'v2')
        repo.add('README.md')
        second = repo.commit('second', AUTHOR)

        commit = repo.store.load(second)
        assert [to_hex(p) for p in commit.parents] == [first]
        assert commit.author.startswith(AUTHOR + ' ')
        assert commit.author.endswith(' +0000')
        assert commit.committer == commit.author
        assert refs.get_head_commit(repo.kit_dir) == second
        repo.index.load()
        assert repo.index.is_empty()

    def test_unchanged_files_carry_over(self, repo_with_commit):
        repo, _ = repo_with_commit
        write_file(repo.work_dir, 'new.txt', 'n')
        repo.add('new.txt')
        repo.commit('add new', AUTHOR)
        assert sorted(repo.head_files()) == ['README.md', 'new.txt']

    def test_nothing_to_commit(self, repo):
        with pytest.raises(errors.NothingToCommit):
            repo.commit('m', AUTHOR)

    @pytest.mark.parametrize('message, author', [('', AUTHOR), ('  ', AUTHOR), ('m', ''), ('m', None)])
    def test_blank_message_or_author(self, repo, message, author):
        write_file(repo.work_dir, 'a.txt', 'x')
        repo.add('a.txt')
        with pytest.raises(errors.InvalidArgument):
            repo.commit(message, author)

    def test_commit_in_detached_head_moves_head(self, repo_with_commit):
        repo, first = repo_with_commit
        refs.set_detached_head(repo.kit_dir, first)
        write_file(repo.work_dir, 'x.txt', 'x')
        repo.add('x.txt')
        second = repo.commit('detached', AUTHOR)
        assert refs.get_head_commit(repo.kit_dir) == second
        assert refs.get_branch_commit(repo.kit_dir, 'master') == first


class TestRemove:
    # Tests for Repository.remove()

    def test_remove_committed_file_stages_tombstone(self, repo_with_commit):
        repo, _ = repo_with_commit
        repo.remove('README.md')

        assert not os.path.exists(os.path.join(repo.work_dir, 'README.md'))
        repo.index.load()
        assert repo.index.get('README.md').is_tombstone
        assert repo.status().staged_deleted == ['README.md']

    def test_remove_cached_keeps_file(self, repo):
        write_file(repo.work_dir, 'a.txt', 'x')
        repo.add('a.txt')
        repo.remove('a.txt', cached=True)

        assert os.path.exists(os.path.join(repo.work_dir, 'a.txt'))
        repo.index.load()
        assert 'a.txt' not in repo.index
        assert repo.status().untracked == ['a.txt']

    def test_remove_staged_new_file(self, repo):
        write_file(repo.work_dir, 'a.txt', 'x')
        repo.add('a.txt')
        repo.remove('a.txt')
        repo.index.load()
        assert repo.index.is_empty()
        assert not os.path.exists(os.path.join(repo.work_dir, 'a.txt'))

    def test_refuses_local_modifications(self, repo):
        write_file(repo.work_dir, 'a.txt', 'x')
        repo.add('a.txt')
        write_file(repo.work_dir, 'a.txt', 'changed!')

        with pytest.raises(errors.LocalModifications):
            repo.remove('a.txt')
        assert read_file(repo.work_dir, 'a.txt') == 'changed!'

    def test_refuses_modifications_against_head(self, repo_with_commit):
        repo, _ = repo_with_commit
        write_file(repo.work_dir, 'README.md', 'edited')
        with pytest.raises(errors.WouldLoseChanges):
            repo.remove('README.md')

    def test_force_removes_modified_file(self, repo_with_commit):
        repo, _ = repo_with_commit
        write_file(repo.work_dir, 'README.md', 'edited')
        repo.remove('README.md', force=True)
        assert not os.path.exists(os.path.join(repo.work_dir, 'README.md'))

    def test_no_match(self, repo):
        with pytest.raises(errors.NoMatch):
            repo.remove('ghost.txt')

    def test_prunes_empty_directories(self, repo):
        write_file(repo.work_dir, 'deep/dir/f.txt', 'x')
        repo.add('deep/dir/f.txt')
        repo.commit('deep', AUTHOR)
        repo.remove('deep/dir/f.txt')
        assert not os.path.exists(os.path.join(repo.work_dir, 'deep'))


class TestStatus:
    # Tests for Repository.status()

    def test_empty_repo_is_clean(self, repo):
        assert repo.status().is_clean

    def test_metadata_dir_not_listed(self, repo):
        write_file(repo.work_dir, 'a.txt', 'x')
        assert repo.status().untracked == ['a.txt']

    def test_unstaged_deleted(self, repo_with_commit):
        repo, _ = repo_with_commit
        repo.reset('mixed', 'HEAD')
        os.remove(os.path.join(repo.work_dir, 'README.md'))
        assert repo.status().unstaged_deleted == ['README.md']


class TestLog:
    # Tests for Repository.log()

    def test_empty_repo(self, repo):
        assert repo.log() == []

    def test_follows_all_parents(self, repo_with_commit):
        repo, first = repo_with_commit
        base = repo.store.load(first)
        tree = base.tree
        side = repo.store.store(Commit(tree, [], 'S <s> 50 +0000', 'S <s> 50 +0000', 'side root'))
        merge = Commit(tree, [bytes.fromhex(first), bytes.fromhex(side)],
                       'M <m> 9999999999 +0000', 'M <m> 9999999999 +0000', 'merge')
        refs.update_head_commit(repo.kit_dir, repo.store.store(merge))

        messages = [c.message for c in repo.log()]
        assert messages == ['merge', 'Initial commit', 'side root']

    def test_sorted_by_committer_time(self, repo):
        tree = repo.write_tree({})
        old = repo.store.store(Commit(tree, [], 'A <a> 100 +0000', 'A <a> 100 +0000', 'old'))
        # Child with an earlier timestamp than its parent still sorts by time
        child = repo.store.store(Commit(tree, [bytes.fromhex(old)], 'A <a> 300 +0000', 'A <a> 50 +0000', 'child'))
        refs.update_head_commit(repo.kit_dir, child)
        assert [c.message for c in repo.log()] == ['old', 'child']


class TestResolve:
    # Tests for Repository.resolve_commit()

    def test_forms(self, repo_with_commit):
        repo, first = repo_with_commit
        write_file(repo.work_dir, 'README.md', 'v2')
        repo.add('README.md')
        second = repo.commit('second', AUTHOR)
        repo.create_tag('v1', first)

        assert repo.resolve_commit('HEAD') == second
        assert repo.resolve_commit('HEAD~1') == first
        assert repo.resolve_commit('HEAD~') == first
        assert repo.resolve_commit('master') == second
        assert repo.resolve_commit('v1') == first
        assert repo.resolve_commit(first.upper()) == first

    def test_unknown(self, repo_with_commit):
        repo, _ = repo_with_commit
        with pytest.raises(errors.NoSuchCommit):
            repo.resolve_commit('nothing-here')
        with pytest.raises(errors.NoSuchCommit):
            repo.resolve_commit('HEAD~5')
        with pytest.raises(errors.NoSuchCommit):
            repo.resolve_commit('f' * 40)

    def test_empty_repository(self, repo):
        with pytest.raises(errors.EmptyRepository):
            repo.resolve_commit('HEAD')


class TestBranchesAndTags:

    def test_create_branch_needs_commit(self, repo):
        with pytest.raises(errors.EmptyRepository):
            repo.create_branch('feature')

    def test_branch_lifecycle(self, repo_with_commit):
        repo, first = repo_with_commit
        assert repo.create_branch('feature') == first
        assert repo.list_branches() == ['feature', 'master']
        assert repo.current_branch() == 'master'
        repo.delete_branch('feature')
        assert repo.list_branches() == ['master']

    def test_tag_lifecycle(self, repo_with_commit):
        repo, first = repo_with_commit
        repo.create_tag('v1')
        assert repo.list_tags() == ['v1']
        commit_hash, commit = repo.show_tag('v1')
        assert commit_hash == first
        assert commit.message == 'Initial commit'
        repo.delete_tag('v1')
        with pytest.raises(errors.NotFound):
            repo.show_tag('v1')
