"""
Source loading: resolve a script path and read its text.
"""

import codecs
import logging
import os

from extraction.config import PROVIDER_PREFIXES
from extraction.errors import PathNotFound
from extraction.models import SourceUnit

logger = logging.getLogger(__name__)

_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def strip_provider_prefix(path: str) -> str:
    """Remove a PowerShell FileSystem provider qualifier from ``path``.

    Example:
        >>> strip_provider_prefix("FileSystem::C:\\scripts\\a.ps1")
        'C:\\scripts\\a.ps1'
    """
    for prefix in PROVIDER_PREFIXES:
        if path.lower().startswith(prefix.lower()):
            return path[len(prefix):]
    return path


def resolve_path(path: str) -> str:
    """Resolve ``path`` to a canonical, literal filesystem location.

    Handles provider prefixes, ``~``, relative paths and symbolic links.

    Raises:
        PathNotFound: If the path does not reference an existing file.
    """
    if not path or not str(path).strip():
        raise PathNotFound(str(path), "empty path")

    literal = os.path.expanduser(strip_provider_prefix(str(path).strip()))
    resolved = os.path.realpath(os.path.abspath(literal))

    if not os.path.exists(resolved):
        raise PathNotFound(resolved)
    if not os.path.isfile(resolved):
        raise PathNotFound(resolved, "not a file")
    return resolved


def decode_source(raw: bytes) -> str:
    """Decode script bytes, honoring a UTF-8 or UTF-16 byte order mark."""
    if raw.startswith(_UTF16_BOMS):
        return raw.decode("utf-16", errors="replace")
    return raw.decode("utf-8-sig", errors="replace")


def load_source(path: str) -> SourceUnit:
    """Load a PowerShell script from disk.

    Args:
        path: Relative, absolute, symlinked or provider-qualified path.

    Returns:
        A SourceUnit with ``raw_text`` populated and no diagnostics yet.

    Raises:
        PathNotFound: If the file is missing or cannot be read.

    Example:
        >>> unit = load_source("Module.psm1")
        >>> unit.path
        '/home/me/Module.psm1'
    """
    resolved = resolve_path(path)
    try:
        with open(resolved, "rb") as f:
            raw = f.read()
    except OSError as e:
        logger.error(f"Error reading file {resolved}: {e}")
        raise PathNotFound(resolved, f"cannot read file ({e.strerror or e})") from e

    logger.debug("Loaded %d bytes from %s", len(raw), resolved)
    return SourceUnit(path=resolved, raw_text=decode_source(raw))
