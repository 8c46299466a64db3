# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import os

import git
import pytest

import gitutil
import unclog.history as uh
import unclog.model as um


class RepoBuilder:
    '''
    creates commits in a scratch git repository. `files` maps repository-relative paths to their
    new contents; `None` removes the path.
    '''
    def __init__(self, repo: git.Repo):
        self.repo = repo

    @property
    def path(self) -> str:
        return self.repo.working_tree_dir

    def write(self, path: str, content: str):
        abs_path = os.path.join(self.path, path)
        os.makedirs(os.path.dirname(abs_path), exist_ok=True)
        with open(abs_path, 'w') as f:
            f.write(content)

    def commit(self, message: str, files: dict[str, str | None]=None) -> git.Commit:
        for path, content in (files or {}).items():
            if content is None:
                self.repo.index.remove([path], working_tree=True)
                continue
            self.write(path, content)
            self.repo.index.add([os.path.join(self.path, path)])

        return self.repo.index.commit(message)

    def tag(self, name: str, commit: git.Commit=None) -> git.TagReference:
        return self.repo.create_tag(name, ref=commit or self.repo.head.commit)


class InMemoryGraph:
    '''
    `CommitGraph` over a synthetic history

    parents: commit-id -> parent commit-ids
    changes: commit-id -> changes introduced by that commit (relative to its first parent)
    files: (commit-id, path) -> contents
    refs: revision name -> commit-id
    '''
    def __init__(
        self,
        parents: dict[str, tuple[str, ...]],
        changes: dict[str, list[uh.Change]]=None,
        files: dict[tuple[str, str], str]=None,
        refs: dict[str, str]=None,
    ):
        self.parents = parents
        self.changes = changes or {}
        self.files = files or {}
        self.refs = refs or {}

    def resolve(self, revision: str) -> uh.Commit:
        hexsha = self.refs.get(revision, revision)
        if hexsha not in self.parents:
            raise um.RevisionNotFound(revision)
        return uh.Commit(hexsha=hexsha)

    def parent(self, commit: uh.Commit) -> uh.Commit:
        parents = self.parents[commit.hexsha]
        if not parents:
            raise um.RootCommit(commit.hexsha)
        if len(parents) > 1:
            raise um.MergeCommitUnsupported(commit.hexsha, parent_count=len(parents))
        return uh.Commit(hexsha=parents[0])

    def diff(self, parent, child, path=None) -> list[uh.Change]:
        return [
            change for change in self.changes.get(child.hexsha, [])
            if path is None or change.path.startswith(f'{path}/')
        ]

    def read(self, commit, path) -> str:
        return self.files[(commit.hexsha, path)]

    def _ancestors(self, hexsha: str) -> list[str]:
        ancestors = [hexsha]
        while (parents := self.parents[hexsha]):
            hexsha = parents[0]
            ancestors.append(hexsha)
        return ancestors

    def merge_base(self, left, right) -> uh.Commit:
        left_ancestors = set(self._ancestors(left.hexsha))
        for hexsha in self._ancestors(right.hexsha):
            if hexsha in left_ancestors:
                return uh.Commit(hexsha=hexsha)
        raise um.BaseNotReachable(base=left.hexsha, tip=right.hexsha)


@pytest.fixture
def git_repo(tmpdir):
    repo = git.Repo.init(tmpdir)

    repo.index.commit('first commit')

    return repo


@pytest.fixture
def repo_builder(git_repo) -> RepoBuilder:
    return RepoBuilder(git_repo)


@pytest.fixture
def git_helper(git_repo) -> gitutil.GitHelper:
    return gitutil.GitHelper(repo=git_repo)


@pytest.fixture
def linear_graph() -> InMemoryGraph:
    '''
    a - b - c - d (d being the tip)
    '''
    return InMemoryGraph(
        parents={
            'a': (),
            'b': ('a',),
            'c': ('b',),
            'd': ('c',),
        },
        refs={
            'v1.0.0': 'a',
            'HEAD': 'd',
        },
    )


@pytest.fixture
def in_memory_graph():
    return InMemoryGraph
