"""
Backups of source files before they are rewritten.

Every file is copied into a timestamped sibling directory of the source root,
mirroring its relative path, so an interrupted run can be undone by restoring
the copies and running again.
"""

import os
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from tracemark.exceptions import BackupError
from tracemark.logging_config import logger

BACKUP_SUFFIX = "_bak_"
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def default_backup_dir(source_root: Path, now: Optional[datetime] = None) -> Path:
    """<parent>/<root name>_bak_<timestamp> next to the source root."""
    source_root = Path(source_root).resolve()
    now = now or datetime.now()
    return source_root.parent / f"{source_root.name}{BACKUP_SUFFIX}{now.strftime(BACKUP_TIMESTAMP_FORMAT)}"


def backup_files(
    files: Iterable[Path],
    source_root: Path,
    backup_root: Path,
    touch: bool = False,
) -> List[Path]:
    """
    Copy files into backup_root, keeping their path relative to source_root.

    Args:
        files: Files to copy; each must live under source_root
        source_root: Root the relative paths are computed from
        backup_root: Destination directory (created if missing)
        touch: Stamp the copies with the current time instead of the original mtime

    Returns:
        Paths of the created copies.

    Raises:
        BackupError: If a file is outside source_root or cannot be copied.
    """
    source_root = Path(source_root).resolve()
    backup_root = Path(backup_root)
    backup_root.mkdir(parents=True, exist_ok=True)

    copies: List[Path] = []
    for file_path in files:
        file_path = Path(file_path).resolve()
        try:
            relative_path = file_path.relative_to(source_root)
        except ValueError:
            raise BackupError(f"{file_path} is not inside {source_root}") from None

        target = backup_root / relative_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(file_path), str(target))
            if touch:
                now = time.time()
                os.utime(target, (now, now))
        except OSError as e:
            raise BackupError(f"Failed to back up {file_path}: {e}") from e

        copies.append(target)
        logger.debug(f"Backed up {relative_path} -> {target}")

    logger.info(f"Backed up {len(copies)} files to '{backup_root}'")
    return copies


def restore_backup(backup_root: Path, target_root: Path) -> List[Path]:
    """
    Copy every file of a backup directory back over target_root.

    Returns:
        Paths of the restored files.

    Raises:
        BackupError: If the backup directory does not exist or a copy fails.
    """
    backup_root = Path(backup_root)
    target_root = Path(target_root)
    if not backup_root.is_dir():
        raise BackupError(f"Backup directory not found: {backup_root}")

    restored: List[Path] = []
    for source in sorted(p for p in backup_root.rglob("*") if p.is_file()):
        target = target_root / source.relative_to(backup_root)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(source), str(target))
        except OSError as e:
            raise BackupError(f"Failed to restore {target}: {e}") from e
        restored.append(target)

    logger.info(f"Restored {len(restored)} files from '{backup_root}'")
    return restored
