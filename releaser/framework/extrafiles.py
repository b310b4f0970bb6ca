from __future__ import annotations

import glob
import logging
import os
from typing import Iterable

from releaser.framework.config import ExtraFile
from releaser.framework.tmpl import TemplateRenderer

_logger = logging.getLogger(__name__)


class ExtraFilesError(ValueError):
    pass


def find_extra_files(
    renderer: TemplateRenderer,
    extra_files: Iterable[ExtraFile],
    *,
    logger: logging.Logger | None = None,
) -> dict[str, str]:
    """
    Resolve `extra_files` globs into an ordered `{display name: path}` mapping.

    The glob and the optional name template are both rendered first. Globs support
    `**`; a glob that matches nothing is an error, and so is a name template on a
    glob matching several files. Later entries win on duplicate names.
    """

    log = logger or _logger
    files: dict[str, str] = {}
    for extra in extra_files:
        if not extra.glob:
            continue

        pattern = renderer.apply(extra.glob)
        matches = sorted(path for path in glob.glob(pattern, recursive=True) if os.path.isfile(path))
        if not matches:
            raise ExtraFilesError(
                f'globbing failed for pattern {extra.glob}: matching "{pattern}": file does not exist'
            )

        name = ""
        if extra.name_template:
            name = renderer.apply(extra.name_template)
            if len(matches) > 1:
                raise ExtraFilesError(
                    f'failed to add extra_file: "{extra.glob}" -> "{name}": glob matches multiple files'
                )

        for path in matches:
            display = name or os.path.basename(path)
            if display in files and files[display] != path:
                log.warning(
                    "ignoring extra file %s: overridden by %s with the same name %s",
                    files[display],
                    path,
                    display,
                )
            log.debug("found extra file: name=%s path=%s", display, path)
            files[display] = path
    return files
