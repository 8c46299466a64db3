# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections
import collections.abc
import dataclasses
import logging
import os
import re

import unclog.config as uc
import unclog.fragments as uf
import unclog.history as uh
import unclog.model as um
import unclog.sections as us

logger = logging.getLogger(__name__)

PREAMBLE = '''# Changelog

All notable changes to this project will be documented in this file.

The format is based on Keep a Changelog, and this project adheres to Semantic Versioning.'''

_version_pattern = re.compile(r'^#+ \[(v\d+\.\d+\.\d+)\]')
_pr_number_pattern = re.compile(r'\(#(?P<number>\d+)\)\s*$')

ReferenceLookup = collections.abc.Callable[[uh.Commit], str]


@dataclasses.dataclass(frozen=True)
class ReleaseResult:
    changelog: str
    fragments: list[um.Fragment]


def version_from_line(line: str) -> str | None:
    if not (match := _version_pattern.match(line)):
        return None
    return match.group(1)


def parse_previous_changelog(
    text: str,
    path: str='<previous changelog>',
) -> um.PreviousChangelog:
    '''
    drops the preamble (anything before the first release header). Returns the version of that
    release, and the remainder of the changelog (starting w/ said header) verbatim.
    '''
    offset = 0
    for line in text.splitlines(keepends=True):
        if version := version_from_line(line):
            return um.PreviousChangelog(
                version=version,
                body=text[offset:],
            )
        offset += len(line)

    raise um.PreviousVersionNotFound(path)


def read_previous_changelog(repo_path: str, path: str) -> um.PreviousChangelog:
    abs_path = os.path.join(repo_path, path)
    try:
        with open(abs_path, encoding='utf-8') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise um.ReadOrWriteFailure(abs_path, reason='could not read previous changelog') from e

    return parse_previous_changelog(text, path=abs_path)


def reference_for_commit(commit: uh.Commit, repo_cfg: um.RepoCfg) -> str:
    '''
    links the pull request a commit was created from, assuming the "squash-merge" convention of
    suffixing the summary w/ `(#<number>)`. Falls back to linking the commit itself.
    '''
    if (match := _pr_number_pattern.search(commit.summary or '')):
        return f'[[PR]]({repo_cfg.pr_url(int(match.group("number")))})'

    return f'[[{commit.short_sha}]]({repo_cfg.commit_url(commit.hexsha)})'


def merge_entries(
    fragments: collections.abc.Iterable[um.Fragment],
    reference_lookup: ReferenceLookup,
) -> dict[str, list[str]]:
    '''
    merges the bullets of all fragments into their respective sections. Within each section,
    fragment-order is preserved.
    '''
    sections = collections.defaultdict(list)

    for fragment in fragments:
        classified = us.classify_fragment(
            lines=fragment.lines,
            reference=reference_lookup(fragment.commit),
        )
        for name, bullets in classified.items():
            sections[name].extend(bullets)

    return dict(sections)


def header(
    tag: str,
    previous_version: str,
    repo_cfg: um.RepoCfg,
    release_date: str,
) -> str:
    # e.g. ## [v1.2.0](https://github.com/acme/widget/compare/v1.1.0...v1.2.0) - 2024-10-15
    compare_url = repo_cfg.compare_url(previous_version, tag)
    return f'## [{tag}]({compare_url}) - {release_date}'


def format_section(name: str, bullets: collections.abc.Sequence[str]) -> str:
    return f'\n\n### {name}\n' + ''.join(f'\n{bullet}' for bullet in bullets)


def render_changelog(
    previous: um.PreviousChangelog,
    sections: collections.abc.Mapping[str, collections.abc.Sequence[str]],
    section_order: collections.abc.Iterable[str],
    release_cfg: um.ReleaseConfig,
) -> str:
    body = PREAMBLE + '\n\n' + header(
        tag=release_cfg.tag,
        previous_version=previous.version,
        repo_cfg=release_cfg.repo_cfg,
        release_date=release_cfg.release_time.date().isoformat(),
    )

    for name in section_order:
        if name == us.IGNORED_SECTION:
            continue
        if not (bullets := sections.get(name)):
            continue
        body += format_section(name, bullets)

    return body + '\n\n' + previous.body


def release(
    graph: uh.CommitGraph,
    release_cfg: um.ReleaseConfig,
) -> ReleaseResult:
    '''
    assembles the changelog for the configured release from the fragments found in the commits
    between the previous release (or `release_cfg.base`) and the release tip.

    Does not write anything: see `write_changelog` and `cleanup_fragments`.
    '''
    previous = read_previous_changelog(
        repo_path=release_cfg.repo_path,
        path=release_cfg.previous_path,
    )
    logger.info(f'previous release: {previous.version}')

    sections_cfg = uc.sections_cfg(
        repo_path=release_cfg.repo_path,
        sections=release_cfg.sections,
    )

    _, commits = uh.commit_range(
        graph=graph,
        base=release_cfg.base or previous.version,
        tip=release_cfg.tip(),
    )

    fragments = uf.find_fragments(
        graph=graph,
        changes_dir=release_cfg.changes_dir,
        commits=commits,
    )
    logger.info(f'found {len(fragments)} changelog fragment(s)')

    sections = merge_entries(
        fragments=fragments,
        reference_lookup=lambda commit: reference_for_commit(commit, release_cfg.repo_cfg),
    )

    if unknown := sorted(
        name for name in sections
        if name != us.IGNORED_SECTION and name not in sections_cfg.permitted
    ):
        logger.warning(f'entries of unknown section(s) will not be rendered: {", ".join(unknown)}')

    return ReleaseResult(
        changelog=render_changelog(
            previous=previous,
            sections=sections,
            section_order=sections_cfg.sections,
            release_cfg=release_cfg,
        ),
        fragments=fragments,
    )


def write_changelog(repo_path: str, path: str, changelog: str):
    abs_path = os.path.join(repo_path, path)
    try:
        with open(abs_path, 'w', encoding='utf-8') as f:
            f.write(changelog)
    except OSError as e:
        raise um.ReadOrWriteFailure(abs_path, reason='could not write changelog to') from e

    logger.info(f'wrote changelog to {abs_path}')


def cleanup_fragments(
    repo_path: str,
    fragments: collections.abc.Iterable[um.Fragment],
):
    '''
    removes the given fragment files from the working tree. Stops at the first failure (leaving
    the remaining fragments in place, which is safe to retry).
    '''
    for fragment in fragments:
        path = os.path.join(repo_path, fragment.path)
        try:
            os.unlink(path)
        except OSError as e:
            raise um.ReadOrWriteFailure(path, reason='could not remove fragment') from e
        logger.info(f'removed {fragment.path}')
