"""
Output directory — resolve, create, and guard the extraction target.

A run only ever writes into an empty directory: extracted files must
not mix with whatever a previous run (or anything else) left behind.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ignextract.core.errors import OutputDirError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedOutput:
    """An absolute, empty directory ready to receive files."""

    root: Path
    created: bool = False


def prepare_output_dir(output: str | os.PathLike[str]) -> PreparedOutput:
    """Make sure ``output`` is an empty directory, creating it if missing.

    Only the target itself is created; missing parents are an error.

    Raises:
        OutputDirError: If the path cannot be resolved, listed, or
            created, or if the directory already has entries.
    """
    try:
        root = Path(os.path.abspath(output))
    except (OSError, ValueError) as e:
        raise OutputDirError(f"output not valid: {e}") from e

    created = False
    try:
        entries = os.listdir(root)
    except FileNotFoundError:
        try:
            root.mkdir()
        except OSError as e:
            raise OutputDirError(f"can't create output dir: {root}: {e}") from e
        logger.info("Created output dir %s", root)
        entries = []
        created = True
    except OSError as e:
        raise OutputDirError(f"can't open output dir: {root}: {e}") from e

    if entries:
        raise OutputDirError(f"output dir not empty: {root}")

    return PreparedOutput(root=root, created=created)
