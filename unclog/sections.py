# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
parsing of changelog fragments into sections

A fragment is free-form markdown. Headings (levels 1 to 6) consisting of a single word denote the
section subsequent bullets (lines starting w/ `- `) belong to, e.g.:

    ### Fixed
    - fixed a bug

Each bullet is annotated w/ a reference to its originating change (unless it already carries a
`[[PR]](https://...)` link). The `Ignored` section is accepted for changes which intentionally do
not contribute to the changelog; it is never rendered.
'''

import collections
import collections.abc
import re

import unclog.model as um

IGNORED_SECTION = 'Ignored'

_section_pattern = re.compile(r'^#{1,6} (\w+)\s?$', flags=re.ASCII)
_pr_link_pattern = re.compile(r'\[\[PR\]\]\(https://[^)]+\)')


def parse_section(line: str) -> str | None:
    if not (match := _section_pattern.match(line)):
        return None
    return match.group(1)


def parse_bullet(line: str, reference: str) -> str | None:
    if not line.lstrip(' ').startswith('- '):
        return None

    if _pr_link_pattern.search(line):
        return line

    return f'{line.rstrip(" .")}. {reference}'


def iter_entries(
    lines: collections.abc.Iterable[str],
    reference: str,
) -> collections.abc.Generator[tuple[str, str], None, None]:
    '''
    yields pairs of (section, bullet). Lines preceding the first heading, as well as lines which
    are neither headings nor bullets, are skipped.
    '''
    section = None # no section seen yet

    for line in lines:
        if (heading := parse_section(line)) is not None:
            section = heading
            continue

        if section is None:
            continue

        if (bullet := parse_bullet(line, reference)) is not None:
            yield section, bullet


def classify_fragment(
    lines: collections.abc.Iterable[str],
    reference: str,
) -> dict[str, list[str]]:
    sections = collections.defaultdict(list)

    for section, bullet in iter_entries(lines, reference):
        sections[section].append(bullet)

    return dict(sections)


def validate_sections(
    sections: collections.abc.Mapping[str, collections.abc.Sequence[str]],
    permitted: collections.abc.Collection[str],
):
    '''
    raises `InvalidSection` if `sections` contains any section name not in `permitted` (other than
    the always accepted `Ignored`)
    '''
    invalid = [
        name for name in sections
        if name != IGNORED_SECTION and name not in permitted
    ]

    if invalid:
        raise um.InvalidSection(
            invalid=sorted(invalid),
            allowed=sorted(permitted),
        )
