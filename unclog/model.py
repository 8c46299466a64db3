# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import datetime
import os
import re
import typing

if typing.TYPE_CHECKING:
    import unclog.history


class UnclogError(RuntimeError):
    '''
    base class for all errors raised while checking fragments or assembling a changelog
    '''
    pass


class RevisionNotFound(UnclogError, ValueError):
    def __init__(self, revision: str):
        self.revision = revision
        super().__init__(f'could not resolve revision {revision!r}')


class EmptyRange(UnclogError):
    def __init__(self, base: str, tip: str):
        self.base = base
        self.tip = tip
        super().__init__(f'no commits between {base=} and {tip=}')


class BaseNotReachable(UnclogError):
    '''
    raised if walking first parents from the tip reaches a root commit before hitting the base
    (i.e. the base is not part of the tip's linear history)
    '''
    def __init__(self, base: str, tip: str):
        self.base = base
        self.tip = tip
        super().__init__(f'{base=} is not an ancestor (by first parents) of {tip=}')


class RootCommit(UnclogError):
    def __init__(self, hexsha: str):
        self.hexsha = hexsha
        super().__init__(f'commit {hexsha} has no parent')


class MergeCommitUnsupported(UnclogError):
    def __init__(self, hexsha: str, parent_count: int):
        self.hexsha = hexsha
        self.parent_count = parent_count
        super().__init__(
            f'commit {hexsha} has {parent_count} parents - merge commits are not supported, '
            'history between base and tip must be linear'
        )


class NoFragment(UnclogError):
    '''
    raised if a commit did not add or modify a changelog fragment. Recoverable: callers collecting
    fragments for a release are expected to log and skip.
    '''
    def __init__(self, hexsha: str, changes_dir: str):
        self.hexsha = hexsha
        self.changes_dir = changes_dir
        super().__init__(f'no changelog fragment found in {changes_dir=} for commit {hexsha}')


class InvalidSection(UnclogError, ValueError):
    def __init__(
        self,
        invalid: typing.Sequence[str],
        allowed: typing.Sequence[str],
    ):
        self.invalid = list(invalid)
        self.allowed = list(allowed)
        super().__init__(
            f'invalid changelog section(s) found: {", ".join(self.invalid)}.\n'
            f'Must be one of: {", ".join(self.allowed)}'
        )


class EmptyFragment(UnclogError, ValueError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'fragment {path} contains no sections')


class PreviousVersionNotFound(UnclogError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'no version heading found in previous changelog at {path}')


class ReadOrWriteFailure(UnclogError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f'{reason} {path}')


class ConfigError(UnclogError, ValueError):
    pass


@dataclasses.dataclass(frozen=True)
class Fragment:
    commit: 'unclog.history.Commit' = dataclasses.field(compare=False)
    path: str
    lines: tuple[str, ...]

    @property
    def name(self) -> str:
        '''
        base name of the fragment file, used to match deletions
        '''
        return os.path.basename(self.path)


@dataclasses.dataclass(frozen=True)
class PreviousChangelog:
    version: str
    body: str


_repo_url_pattern = re.compile(
    r'^(?:[a-z+]+://)?(?:[^@/]+@)?(?P<host>[^:/]+)[:/](?P<org>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$'
)


@dataclasses.dataclass(frozen=True)
class RepoCfg:
    owner: str
    name: str
    hostname: str = 'github.com'
    main_rev: str = 'origin/develop'

    @staticmethod
    def from_repo_url(
        repo_url: str,
        main_rev: str='origin/develop',
    ) -> typing.Self:
        '''
        parses repository coordinates from a remote url. Both scp-like (`git@host:org/repo.git`)
        and url-style (`https://host/org/repo`) notations are understood.
        '''
        if not (match := _repo_url_pattern.match(repo_url.strip())):
            raise ValueError(f'cannot parse owner and repository from {repo_url=}')

        return RepoCfg(
            owner=match.group('org'),
            name=match.group('repo'),
            hostname=match.group('host'),
            main_rev=main_rev,
        )

    @property
    def url(self) -> str:
        return f'https://{self.hostname}/{self.owner}/{self.name}'

    def pr_url(self, number: int) -> str:
        return f'{self.url}/pull/{number}'

    def commit_url(self, hexsha: str) -> str:
        return f'{self.url}/commit/{hexsha}'

    def compare_url(self, whence: str, whither: str) -> str:
        return f'{self.url}/compare/{whence}...{whither}'


@dataclasses.dataclass(frozen=True, kw_only=True)
class ReleaseConfig:
    '''
    describes one release run

    repo_path: root of the (git) working tree; all other paths are relative to it
    changes_dir: directory containing the per-commit changelog fragments
    tag: the new release tag (must exist in the repository unless `branch` is given)
    base: revision to walk back to; defaults to the version of the previous changelog
    branch: tip revision to walk from; defaults to `tag`
    previous_path: the changelog to extend
    output_path: where to write the merged changelog; defaults to `previous_path`
    cleanup: whether to delete the consumed fragment files afterwards
    sections: explicit section order (overrides `.unclog.yaml` and the defaults)
    '''
    repo_path: str
    tag: str
    repo_cfg: RepoCfg
    changes_dir: str = 'changelog'
    base: str | None = None
    branch: str | None = None
    previous_path: str = 'CHANGELOG.md'
    output_path: str | None = None
    cleanup: bool = False
    release_time: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.now(tz=datetime.timezone.utc),
    )
    sections: tuple[str, ...] | None = None

    @property
    def effective_output_path(self) -> str:
        return self.output_path or self.previous_path

    def tip(self) -> str:
        return self.branch or self.tag
