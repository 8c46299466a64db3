# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import functools
import logging
import os

import dacite
import yaml

import unclog.model as um

logger = logging.getLogger(__name__)

CONFIG_DIR = 'changelog'
CONFIG_FILENAME = '.unclog.yaml'

DEFAULT_SECTIONS = (
    'Added',
    'Changed',
    'Deprecated',
    'Removed',
    'Fixed',
    'Security',
)


@dataclasses.dataclass(frozen=True)
class SectionsCfg:
    '''
    the changelog sections, in the order they are to be rendered in
    '''
    sections: tuple[str, ...] = DEFAULT_SECTIONS

    @functools.cached_property
    def permitted(self) -> frozenset[str]:
        return frozenset(self.sections)


def config_path(repo_path: str) -> str:
    return os.path.join(repo_path, CONFIG_DIR, CONFIG_FILENAME)


def load_config(repo_path: str) -> SectionsCfg | None:
    '''
    reads `changelog/.unclog.yaml` from the given repository. Returns `None` if there is no such
    file.
    '''
    path = config_path(repo_path)
    if not os.path.isfile(path):
        return None

    try:
        with open(path, encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise um.ReadOrWriteFailure(path, reason='could not read config file') from e
    except yaml.YAMLError as e:
        raise um.ConfigError(f'{path} is not valid YAML: {e}') from e

    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise um.ConfigError(f'{path}: expected a mapping, found {type(raw).__name__}')

    if not (sections := raw.get('sections')):
        return None
    if not isinstance(sections, list):
        raise um.ConfigError(f'{path}: `sections` must be a list, found {type(sections).__name__}')

    try:
        cfg = dacite.from_dict(
            data_class=SectionsCfg,
            data={'sections': sections},
            config=dacite.Config(cast=[tuple], strict=True),
        )
    except dacite.DaciteError as e:
        raise um.ConfigError(f'{path}: {e}') from e

    logger.info(f'using sections from {path}: {", ".join(cfg.sections)}')
    return cfg


def sections_cfg(
    repo_path: str,
    sections: tuple[str, ...] | None=None,
) -> SectionsCfg:
    '''
    determines the effective sections: explicitly passed ones take precedence over the ones
    configured in the repository, which in turn take precedence over the defaults
    '''
    if sections:
        return SectionsCfg(sections=tuple(sections))

    if (cfg := load_config(repo_path)):
        return cfg

    return SectionsCfg()
