"""File operation utilities"""

import shutil
from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """
    Create a directory (and parents) if needed

    Args:
        path: Directory path

    Returns:
        The directory path
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_directory(path: Path) -> None:
    """Remove a directory tree, ignoring a missing one"""
    path = Path(path)
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def replace_directory(source: Path, destination: Path) -> None:
    """
    Move ``source`` to ``destination``, replacing whatever was there

    Args:
        source: Directory to move
        destination: Final location
    """
    destination = Path(destination)
    remove_directory(destination)
    ensure_directory(destination.parent)
    shutil.move(str(source), str(destination))
