"""Storage path building utilities.

This module provides the single point of logic for building document paths.

Path Invariant:
    {user_id}/{unique}-{file_name}

Rules:
    - No leading slash
    - First segment is the owner's user id (bucket policies key on it)
    - `unique` is a fresh UUID per upload, never derived from name or content
"""

from uuid import uuid4


def sanitize_file_name(file_name: str) -> str:
    """Strip directory components so a file name cannot add path segments."""
    name = file_name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or "file"


def build_document_path(user_id: str, file_name: str) -> str:
    """Build the storage path for a newly uploaded document.

    Args:
        user_id: Owner's user id.
        file_name: Original file name as picked by the user.

    Returns:
        Storage path, e.g. "8c2f.../3b1d...-report.pdf".
    """
    return f"{user_id}/{uuid4()}-{sanitize_file_name(file_name)}"
