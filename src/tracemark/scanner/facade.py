import os
from pathlib import Path
from typing import List, Optional

import pathspec

from tracemark.logging_config import logger
from .config import (
    DEFAULT_EXTENSIONS,
    DEFAULT_IGNORE_PATTERNS,
    validate_extensions,
    validate_ignore_patterns,
)


def find_source_files(
    directory: Path,
    extensions: Optional[List[str]] = None,
    ignore_patterns: Optional[List[str]] = None,
    use_default_ignores: bool = True,
) -> List[Path]:
    """
    Finds every source file below a directory.

    Args:
        directory: The root directory to start the scan from.
        extensions: File extensions to include. Defaults to ['.cpp'].
        ignore_patterns: Extra gitignore-style patterns to exclude.
        use_default_ignores: If True, DEFAULT_IGNORE_PATTERNS are applied too.

    Returns:
        Sorted list of absolute file paths.

    Raises:
        ConfigError: If extensions or ignore patterns are malformed.
    """
    directory = Path(directory)
    extensions = list(extensions) if extensions else list(DEFAULT_EXTENSIONS)
    validate_extensions(extensions)

    all_patterns: List[str] = []
    if use_default_ignores:
        all_patterns.extend(DEFAULT_IGNORE_PATTERNS)
    if ignore_patterns:
        validate_ignore_patterns(list(ignore_patterns))
        all_patterns.extend(ignore_patterns)

    spec = pathspec.PathSpec.from_lines("gitwildmatch", all_patterns)
    logger.debug(f"Scanning '{directory}' for {extensions} with {len(all_patterns)} ignore patterns")

    allowed_extensions = set(extensions)
    found: List[Path] = []

    for root, dirs, files in os.walk(directory):
        root_path = Path(root)

        # Prune ignored directories so os.walk never descends into them.
        kept_dirs = []
        for d in sorted(dirs):
            relative_dir = (root_path / d).relative_to(directory).as_posix() + "/"
            if spec.match_file(relative_dir):
                logger.debug(f"Ignoring directory '{relative_dir}' due to ignore rules")
            else:
                kept_dirs.append(d)
        dirs[:] = kept_dirs

        for file_name in files:
            file_path = root_path / file_name
            if file_path.suffix not in allowed_extensions:
                continue

            relative_path = file_path.relative_to(directory).as_posix()
            if spec.match_file(relative_path):
                logger.debug(f"Ignoring '{relative_path}' due to ignore rules")
                continue

            found.append(file_path.resolve())

    found.sort()
    logger.info(f"Found {len(found)} source files under '{directory}'")
    return found
