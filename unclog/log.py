# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import copy
import logging
import sys

import termcolor


class UnclogFormatter(logging.Formatter):
    level_colours = {
        logging.DEBUG: 'blue',
        logging.INFO: 'green',
        logging.WARNING: 'yellow',
        logging.ERROR: 'red',
        logging.CRITICAL: 'red',
    }

    def __init__(self, *args, use_colours: bool | None=None, **kwargs):
        super().__init__(*args, **kwargs)
        if use_colours is None:
            use_colours = sys.stderr.isatty()
        self.use_colours = use_colours

    def colour_level_name(self, level_name: str, level_number: int) -> str:
        if not (colour := self.level_colours.get(level_number)):
            return level_name
        return termcolor.colored(level_name, colour, attrs=['bold'])

    def formatMessage(self, record):
        record_copy = copy.copy(record)
        levelname = record_copy.levelname
        if self.use_colours:
            levelname = self.colour_level_name(levelname, record_copy.levelno)
        record_copy.__dict__['levelprefix'] = levelname
        return super().formatMessage(record_copy)


def default_fmt_string() -> str:
    return '%(asctime)s [%(levelprefix)s] %(name)s: %(message)s'


def configure_default_logging(
    stdout_level=None,
    force=True,
):
    if not stdout_level:
        stdout_level = logging.INFO

    # make sure to have a clean root logger (in case setup is called multiple times)
    if force:
        for h in list(logging.root.handlers):
            logging.root.removeHandler(h)
            h.close()

    sh = logging.StreamHandler()
    sh.setLevel(stdout_level)
    sh.setFormatter(UnclogFormatter(fmt=default_fmt_string()))

    logging.root.addHandler(hdlr=sh)
    logging.root.setLevel(level=stdout_level)

    # GitPython logs every git invocation on debug
    logging.getLogger('git').setLevel(logging.WARNING)
