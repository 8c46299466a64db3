# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections.abc
import logging
import os

import unclog.history as uh
import unclog.model as um

logger = logging.getLogger(__name__)


def is_fragment_path(path: str) -> bool:
    '''
    dot-files below the changes directory (e.g. `.unclog.yaml`, `.gitkeep`) are not fragments
    '''
    return not os.path.basename(path).startswith('.')


def split_lines(text: str) -> tuple[str, ...]:
    # only `\n` (optionally preceded by `\r`) separates lines
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    return tuple(line.removesuffix('\r') for line in lines)


def find_fragment(
    graph: uh.CommitGraph,
    changes_dir: str,
    parent: uh.Commit,
    child: uh.Commit,
) -> um.Fragment:
    '''
    returns the fragment added (or modified) below `changes_dir` between `parent` and `child`.

    Raises `NoFragment` if there is none. If there is more than one, the first one (in diff-order)
    is returned.
    '''
    candidates = [
        change.path for change in graph.diff(parent, child, path=changes_dir)
        if change.action in (uh.ChangeAction.ADDED, uh.ChangeAction.MODIFIED)
        and is_fragment_path(change.path)
    ]

    if not candidates:
        raise um.NoFragment(child.hexsha, changes_dir=changes_dir)

    path, *ignored = candidates
    if ignored:
        logger.warning(
            f'commit {child.short_sha} touches more than one fragment - using {path}, '
            f'ignoring {", ".join(ignored)}'
        )

    return um.Fragment(
        commit=child,
        path=path,
        lines=split_lines(graph.read(child, path)),
    )


def find_deleted_fragments(
    graph: uh.CommitGraph,
    changes_dir: str,
    commits: collections.abc.Sequence[uh.Commit],
) -> set[str]:
    '''
    returns the base names of all fragment files deleted by any of the given commits.
    `commits` is expected tip-first (as returned by `commit_range`); it is scanned oldest-first.
    '''
    deleted = set()
    for commit in reversed(commits):
        parent = graph.parent(commit)
        for change in graph.diff(parent, commit, path=changes_dir):
            if change.action is uh.ChangeAction.DELETED and is_fragment_path(change.old_path):
                deleted.add(os.path.basename(change.old_path))

    if deleted:
        logger.info(f'fragments deleted within range: {", ".join(sorted(deleted))}')

    return deleted


def find_fragments(
    graph: uh.CommitGraph,
    changes_dir: str,
    commits: collections.abc.Sequence[uh.Commit],
) -> list[um.Fragment]:
    '''
    finds the fragment of each of the given commits (tip-first), except for fragments deleted
    again by any commit within the same range
    '''
    fragments = []
    for commit in commits:
        try:
            fragment = find_fragment(
                graph=graph,
                changes_dir=changes_dir,
                parent=graph.parent(commit),
                child=commit,
            )
        except um.NoFragment:
            logger.info(f'no changelog fragment found for commit {commit.hexsha}')
            continue
        fragments.append(fragment)

    deleted = find_deleted_fragments(
        graph=graph,
        changes_dir=changes_dir,
        commits=commits,
    )

    return [
        fragment for fragment in fragments
        if fragment.name not in deleted
    ]
