"""File system operations."""

import os
import tempfile
from pathlib import Path


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, create if not.

    Args:
        path: Path to directory

    Returns:
        Path object for the directory
    """
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_atomic(path: str | Path, text: str, mode: int = 0o600) -> None:
    """Write text to a file so readers never observe a partial write.

    The content goes to a temporary file in the same directory which then
    replaces the target in one rename.

    Args:
        path: Destination file
        text: Content to write (UTF-8)
        mode: Permission bits for the resulting file

    Raises:
        OSError: If the directory is not writable or the disk is full
    """
    target = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
