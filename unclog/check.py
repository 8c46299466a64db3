# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
pre-merge checks for changelog fragments
'''

import collections.abc
import logging
import os

import unclog.config as uc
import unclog.fragments as uf
import unclog.history as uh
import unclog.model as um
import unclog.sections as us

logger = logging.getLogger(__name__)


def check_fragment(
    lines: collections.abc.Iterable[str],
    path: str,
    sections_cfg: uc.SectionsCfg,
):
    '''
    raises `EmptyFragment` if the given fragment does not contain any entries, and
    `InvalidSection` if it contains entries for sections not permitted by `sections_cfg`
    '''
    classified = {
        name: bullets
        for name, bullets in us.classify_fragment(lines, reference='').items()
        if bullets
    }

    if not classified:
        raise um.EmptyFragment(path)

    us.validate_sections(classified, permitted=sections_cfg.permitted)


def fragment_paths_from_env(env_var: str) -> list[str]:
    '''
    reads a newline-separated list of fragment paths from the given environment variable (as
    e.g. exported from a list of changed files in a pull-request pipeline)
    '''
    paths = [
        path.strip() for path in os.environ.get(env_var, '').split('\n')
        if path.strip()
    ]
    if not paths:
        raise um.ConfigError(f'no fragments found in env var {env_var}')

    return paths


def check_fragment_files(
    repo_path: str,
    paths: collections.abc.Iterable[str],
    sections_cfg: uc.SectionsCfg,
):
    for path in paths:
        abs_path = os.path.join(repo_path, path)
        try:
            with open(abs_path, encoding='utf-8', newline='') as f:
                lines = uf.split_lines(f.read())
        except (OSError, UnicodeDecodeError) as e:
            raise um.ReadOrWriteFailure(abs_path, reason='could not read fragment file at') from e

        check_fragment(
            lines=lines,
            path=path,
            sections_cfg=sections_cfg,
        )
        logger.info(f'fragment {path} is valid')


def check_branch(
    graph: uh.CommitGraph,
    changes_dir: str,
    main_rev: str,
    branch: str,
    sections_cfg: uc.SectionsCfg,
) -> um.Fragment:
    '''
    looks up the fragment added on `branch` since it forked off from `main_rev`, and validates it
    '''
    fork_point, commits = uh.branch_range(
        graph=graph,
        main_rev=main_rev,
        branch=branch,
    )
    tip = commits[0]
    logger.info(
        f'looking for changelog fragment between upstream commit {fork_point.hexsha} '
        f'and {branch=} ({tip.hexsha})'
    )

    fragment = uf.find_fragment(
        graph=graph,
        changes_dir=changes_dir,
        parent=fork_point,
        child=tip,
    )

    check_fragment(
        lines=fragment.lines,
        path=fragment.path,
        sections_cfg=sections_cfg,
    )

    return fragment
