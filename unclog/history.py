# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
commit model and the (version-control backend agnostic) walk over a linear range of commits.

All access to parents, trees and diffs goes through a `CommitGraph`; see `gitutil.GitHelper` for
the implementation backed by a git repository.
'''

import dataclasses
import enum
import logging
import typing

import unclog.model as um

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Commit:
    hexsha: str
    summary: str = ''
    handle: object = dataclasses.field(default=None, compare=False, repr=False)

    @property
    def short_sha(self) -> str:
        return self.hexsha[:7]


class ChangeAction(enum.StrEnum):
    ADDED = 'added'
    MODIFIED = 'modified'
    DELETED = 'deleted'


@dataclasses.dataclass(frozen=True)
class Change:
    action: ChangeAction
    old_path: str | None
    new_path: str | None

    @property
    def path(self) -> str:
        if self.action is ChangeAction.DELETED:
            return self.old_path
        return self.new_path


class CommitGraph(typing.Protocol):
    def resolve(self, revision: str) -> Commit:
        '''
        resolves the given revision (branch, tag, commit-digest, ..) to a commit. Raises
        `RevisionNotFound` if the revision is unknown.
        '''
        ...

    def parent(self, commit: Commit) -> Commit:
        '''
        returns the one parent of the given commit. Raises `RootCommit` for commits w/o parents and
        `MergeCommitUnsupported` for commits w/ more than one parent.
        '''
        ...

    def diff(self, parent: Commit, child: Commit, path: str | None=None) -> list[Change]:
        '''
        lists changes between the trees of `parent` and `child`, optionally restricted to paths
        below `path`
        '''
        ...

    def read(self, commit: Commit, path: str) -> str:
        ...

    def merge_base(self, left: Commit, right: Commit) -> Commit:
        ...


def commit_range(
    graph: CommitGraph,
    base: str,
    tip: str,
) -> tuple[Commit, tuple[Commit, ...]]:
    '''
    returns the commit `base` resolves to, and all commits from `tip` back to (but excluding) the
    base, tip first.

    Only first parents are followed, and merge commits are rejected: the history between base and
    tip is expected to be linear.
    '''
    base_commit = graph.resolve(base)
    tip_commit = graph.resolve(tip)

    if base_commit == tip_commit:
        raise um.EmptyRange(base=base, tip=tip)

    commits = []
    commit = tip_commit
    while commit != base_commit:
        commits.append(commit)
        try:
            commit = graph.parent(commit)
        except um.RootCommit:
            raise um.BaseNotReachable(base=base, tip=tip)

    logger.info(f'found {len(commits)} commit(s) in range {base}..{tip}')
    return base_commit, tuple(commits)


def branch_range(
    graph: CommitGraph,
    main_rev: str,
    branch: str,
) -> tuple[Commit, tuple[Commit, ...]]:
    '''
    like `commit_range`, but walks back to where `branch` forked off from `main_rev`, which need
    not be an ancestor of `branch` itself (e.g. if the main branch progressed since)
    '''
    fork_point = graph.merge_base(
        graph.resolve(main_rev),
        graph.resolve(branch),
    )
    logger.info(f'{branch=} forked from {main_rev=} at {fork_point.hexsha}')

    return commit_range(
        graph=graph,
        base=fork_point.hexsha,
        tip=branch,
    )
