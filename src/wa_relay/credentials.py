"""
Credential store — persists the CredentialBundle to a single file.

The file holds the bundle's JSON bytes. Writes go to a temporary sibling
and are renamed into place, so a reader never sees a partial file.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from wa_relay.errors import CredentialCorrupt, CredentialNotFound
from wa_relay.models.credentials import CredentialBundle

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load(path: PathLike) -> CredentialBundle:
    path = Path(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        raise CredentialNotFound(str(path))
    try:
        return CredentialBundle.model_validate_json(raw)
    except ValueError as e:
        raise CredentialCorrupt(str(path), str(e).splitlines()[0] if str(e) else type(e).__name__)


def save(path: PathLike, bundle: CredentialBundle) -> None:
    """Atomically write the bundle. Raises OSError on failure."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(bundle.model_dump_json().encode("utf-8"))
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    logger.debug("credential bundle saved to %s", path)


def exists(path: PathLike) -> bool:
    try:
        return Path(path).is_file()
    except OSError:
        return False


def remove(path: PathLike) -> None:
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return
    logger.debug("credential file %s removed", path)
