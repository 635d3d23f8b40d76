"""Content hash calculation for utility directories"""

import hashlib
import os
from pathlib import Path
from typing import List

import aiofiles

from ..constants import UTILITY_DESCRIPTOR_FILE, EXCLUDED_DIR_NAMES, DEFAULT_CHUNK_SIZE


def _entry_header(rel_path: str, size: int) -> bytes:
    """Length-prefixed path followed by the content length"""
    path_bytes = rel_path.encode('utf-8')
    return len(path_bytes).to_bytes(8, 'big') + path_bytes + size.to_bytes(8, 'big')


def list_utility_files(directory: Path) -> List[str]:
    """
    List the files that make up a utility

    Args:
        directory: Utility root directory

    Returns:
        Relative POSIX paths, sorted, without the descriptor file
    """
    directory = Path(directory)
    files = []

    for current, dirnames, filenames in os.walk(directory):
        dirnames[:] = [d for d in dirnames if d not in EXCLUDED_DIR_NAMES]
        current_path = Path(current)
        for filename in filenames:
            rel_path = (current_path / filename).relative_to(directory).as_posix()
            if rel_path == UTILITY_DESCRIPTOR_FILE:
                continue
            files.append(rel_path)

    return sorted(files)


def calculate_directory_hash(directory: Path,
                             algorithm: str = "sha256",
                             chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """
    Calculate hash of a utility's contents

    Every file contributes, in sorted path order, its relative path and its
    content, each preceded by its length as an 8-byte big-endian integer.

    Args:
        directory: Utility root directory
        algorithm: Hash algorithm
        chunk_size: Read chunk size

    Returns:
        Hex digest string
    """
    directory = Path(directory)
    hash_func = hashlib.new(algorithm)

    for rel_path in list_utility_files(directory):
        path = directory / rel_path
        hash_func.update(_entry_header(rel_path, path.stat().st_size))

        with open(path, 'rb') as f:
            while chunk := f.read(chunk_size):
                hash_func.update(chunk)

    return hash_func.hexdigest()


async def calculate_directory_hash_async(directory: Path,
                                         algorithm: str = "sha256",
                                         chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """
    Calculate the directory hash without blocking the event loop

    Produces the same digest as :func:`calculate_directory_hash`.

    Args:
        directory: Utility root directory
        algorithm: Hash algorithm
        chunk_size: Read chunk size

    Returns:
        Hex digest string
    """
    directory = Path(directory)
    hash_func = hashlib.new(algorithm)

    for rel_path in list_utility_files(directory):
        path = directory / rel_path
        hash_func.update(_entry_header(rel_path, path.stat().st_size))

        async with aiofiles.open(path, 'rb') as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                hash_func.update(chunk)

    return hash_func.hexdigest()
