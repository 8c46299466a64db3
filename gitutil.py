# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging

import git
import git.exc

import unclog.history as uh
import unclog.model as um

logger = logging.getLogger(__name__)


def _commit(commit: git.Commit) -> uh.Commit:
    return uh.Commit(
        hexsha=commit.hexsha,
        summary=commit.summary,
        handle=commit,
    )


class GitHelper:
    '''
    `unclog.history.CommitGraph` backed by a local git repository (via GitPython)
    '''
    def __init__(
        self,
        repo,
    ):
        if repo is None:
            raise ValueError(repo)
        if isinstance(repo, str):
            repo = git.Repo(repo)
        if not isinstance(repo, git.Repo):
            raise ValueError(repo)

        self.repo = repo

    @property
    def repo_path(self) -> str:
        return self.repo.working_tree_dir

    def _git_commit(self, commit: uh.Commit) -> git.Commit:
        if isinstance(commit.handle, git.Commit):
            return commit.handle
        return self.repo.commit(commit.hexsha)

    def remote_url(self, name: str='origin') -> str | None:
        for remote in self.repo.remotes:
            if remote.name == name:
                return remote.url
        return None

    def resolve(self, revision: str) -> uh.Commit:
        try:
            return _commit(self.repo.commit(revision))
        except (git.exc.BadName, git.exc.BadObject, ValueError) as e:
            logger.debug(f'failed to resolve {revision=}: {e}')
            raise um.RevisionNotFound(revision)

    def parent(self, commit: uh.Commit) -> uh.Commit:
        parents = self._git_commit(commit).parents
        if not parents:
            raise um.RootCommit(commit.hexsha)
        if len(parents) > 1:
            raise um.MergeCommitUnsupported(commit.hexsha, parent_count=len(parents))

        return _commit(parents[0])

    def diff(
        self,
        parent: uh.Commit,
        child: uh.Commit,
        path: str | None=None,
    ) -> list[uh.Change]:
        diff_index = self._git_commit(parent).diff(
            self._git_commit(child),
            paths=path,
        )

        changes = []
        for diff in diff_index:
            if diff.new_file:
                changes.append(uh.Change(uh.ChangeAction.ADDED, None, diff.b_path))
            elif diff.deleted_file:
                changes.append(uh.Change(uh.ChangeAction.DELETED, diff.a_path, None))
            elif diff.renamed_file:
                # a rename removes the old name as far as fragment bookkeeping is concerned
                changes.append(uh.Change(uh.ChangeAction.DELETED, diff.a_path, None))
                changes.append(uh.Change(uh.ChangeAction.ADDED, None, diff.b_path))
            else:
                changes.append(uh.Change(uh.ChangeAction.MODIFIED, diff.a_path, diff.b_path))

        return changes

    def read(self, commit: uh.Commit, path: str) -> str:
        tree = self._git_commit(commit).tree
        try:
            blob = tree / path
        except KeyError as e:
            raise um.ReadOrWriteFailure(path, reason=f'no such file in {commit.hexsha}:') from e

        try:
            return blob.data_stream.read().decode('utf-8')
        except UnicodeDecodeError as e:
            raise um.ReadOrWriteFailure(path, reason=f'not utf-8 encoded in {commit.hexsha}:') from e

    def merge_base(self, left: uh.Commit, right: uh.Commit) -> uh.Commit:
        if not (merge_bases := self.repo.merge_base(
            self._git_commit(left),
            self._git_commit(right),
        )):
            raise um.BaseNotReachable(base=left.hexsha, tip=right.hexsha)

        return _commit(merge_bases[0])
