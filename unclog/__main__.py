# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import argparse
import datetime
import logging
import os
import sys

import git.exc
import termcolor

import gitutil
import unclog.check
import unclog.config
import unclog.log
import unclog.model as um
import unclog.release

logger = logging.getLogger(__name__)


def _print(msg: str, colour: str | None=None, outfh=None):
    if not msg:
        return
    outfh = outfh or sys.stdout
    if colour and outfh.isatty():
        msg = termcolor.colored(msg, colour)
    outfh.write(msg + '\n')
    outfh.flush()


def _comma_separated(value: str) -> tuple[str, ...]:
    return tuple(v.strip() for v in value.split(',') if v.strip())


def _git_helper(repo_path: str) -> gitutil.GitHelper:
    try:
        return gitutil.GitHelper(repo=repo_path)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
        raise um.ReadOrWriteFailure(repo_path, reason='not a git repository:') from e


def _repo_cfg(parsed, git_helper: gitutil.GitHelper) -> um.RepoCfg:
    if parsed.owner and parsed.repo_name:
        return um.RepoCfg(
            owner=parsed.owner,
            name=parsed.repo_name,
            hostname=parsed.hostname,
        )

    if not (remote_url := git_helper.remote_url()):
        raise um.ConfigError(
            'cannot determine repository coordinates: pass --owner and --repo-name, or '
            'configure an `origin` remote'
        )

    try:
        repo_cfg = um.RepoCfg.from_repo_url(remote_url)
    except ValueError as e:
        raise um.ConfigError(str(e)) from e

    logger.info(f'using repository coordinates from origin: {repo_cfg.url}')
    return repo_cfg


def check(parsed):
    sections_cfg = unclog.config.sections_cfg(
        repo_path=parsed.repo,
        sections=parsed.sections,
    )

    if parsed.fragment_env:
        unclog.check.check_fragment_files(
            repo_path=parsed.repo,
            paths=unclog.check.fragment_paths_from_env(parsed.fragment_env),
            sections_cfg=sections_cfg,
        )
        return

    fragment = unclog.check.check_branch(
        graph=_git_helper(parsed.repo),
        changes_dir=parsed.changelog_dir,
        main_rev=parsed.main_rev,
        branch=parsed.branch,
        sections_cfg=sections_cfg,
    )
    _print(f'found fragment path: {fragment.path}')


def release(parsed):
    git_helper = _git_helper(parsed.repo)

    release_cfg = um.ReleaseConfig(
        repo_path=parsed.repo,
        tag=parsed.tag,
        repo_cfg=_repo_cfg(parsed, git_helper),
        changes_dir=parsed.changelog_dir,
        base=parsed.base,
        branch=parsed.branch,
        previous_path=parsed.prev,
        output_path=parsed.output,
        cleanup=parsed.cleanup,
        release_time=datetime.datetime.now(tz=datetime.timezone.utc),
        sections=parsed.sections,
    )

    result = unclog.release.release(
        graph=git_helper,
        release_cfg=release_cfg,
    )

    unclog.release.write_changelog(
        repo_path=release_cfg.repo_path,
        path=release_cfg.effective_output_path,
        changelog=result.changelog,
    )

    if release_cfg.cleanup:
        unclog.release.cleanup_fragments(
            repo_path=release_cfg.repo_path,
            fragments=result.fragments,
        )


def _add_common_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--repo',
        default=os.getcwd(),
        help='path to the git repository (default: current working directory)',
    )
    parser.add_argument(
        '--changelog-dir',
        default='changelog',
        help='directory containing the changelog fragments, relative to --repo',
    )
    parser.add_argument(
        '--sections',
        type=_comma_separated,
        default=None,
        help='comma-separated list of permitted sections, in rendering order '
        '(default: from changelog/.unclog.yaml, or Added,Changed,Deprecated,Removed,Fixed,Security)',
    )


def main(argv=None):
    parser = argparse.ArgumentParser(prog='unclog')
    parser.add_argument('--verbose', '-v', action='store_true')
    maincmd_parsers = parser.add_subparsers(
        title='commands',
        required=True,
    )

    check_parser = maincmd_parsers.add_parser(
        'check',
        help='validates the changelog fragment added on a branch (or listed in an env var)',
    )
    _add_common_args(check_parser)
    check_parser.add_argument(
        '--main-rev',
        default='origin/develop',
        help='main branch tip revision',
    )
    check_parser.add_argument('--branch', default='HEAD', help='branch tip revision')
    check_parser.add_argument(
        '--fragment-env',
        default=None,
        help='name of an env var containing a newline-separated list of fragments to check',
    )
    check_parser.set_defaults(callable=check)

    release_parser = maincmd_parsers.add_parser(
        'release',
        help='merges all fragments since the previous release into the changelog',
    )
    _add_common_args(release_parser)
    release_parser.add_argument(
        '--tag',
        required=True,
        help='new release tag (must already exist in repo, unless --branch is passed)',
    )
    release_parser.add_argument(
        '--prev',
        default='CHANGELOG.md',
        help='path to the current changelog, relative to --repo',
    )
    release_parser.add_argument(
        '--output',
        default=None,
        help='path to write the merged changelog to, relative to --repo (default: --prev)',
    )
    release_parser.add_argument(
        '--base',
        default=None,
        help='revision to collect fragments from (default: version of the previous changelog)',
    )
    release_parser.add_argument(
        '--branch',
        default=None,
        help='revision to collect fragments up to (default: --tag)',
    )
    release_parser.add_argument(
        '--cleanup',
        action='store_true',
        help='remove the changelog fragment files after generating the changelog',
    )
    release_parser.add_argument('--owner', default=None, help='default: from origin remote')
    release_parser.add_argument('--repo-name', default=None, help='default: from origin remote')
    release_parser.add_argument('--hostname', default='github.com')
    release_parser.set_defaults(callable=release)

    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        parser.print_usage()
        sys.exit(0)

    parsed = parser.parse_args(argv)

    unclog.log.configure_default_logging(
        stdout_level=logging.DEBUG if parsed.verbose else logging.INFO,
    )

    try:
        parsed.callable(parsed)
    except um.UnclogError as e:
        _print(f'ERROR: {e}', colour='red', outfh=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
