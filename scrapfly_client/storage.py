from __future__ import annotations

import os


def save_bytes(data: bytes, directory: str, filename: str) -> str:
    """Write ``data`` to ``directory/filename`` and return the file path.

    The directory is created when missing."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    with open(path, "wb") as f:
        f.write(data)
    return path
