"""
Materializing the in-memory TLS credentials as temporary files.

Some consumers of the credentials (e.g. ``kubectl``) accept only the paths
to the files, not the certificates or keys themselves. For them, the blobs
are written to temporary files, and the paths are put into a new copy
of the connection info. The files must be deleted after use::

    with tlsfiles.tls_files(info, settings=settings) as info:
        ...  # use info.ca_path, info.certificate_path, info.private_key_path

The temporary directory is taken from the settings, where it is detected
once (a memory-backed filesystem if available): never from the environment
at the time of the call.
"""
import contextlib
import dataclasses
import logging
import os
import tempfile
import urllib.parse
from typing import Iterator, Optional, Union

from kubefan._cogs.clients import auth
from kubefan._cogs.configs import configuration
from kubefan._cogs.structs import credentials

logger = logging.getLogger(__name__)


def generate_tls_files(
        info: credentials.ConnectionInfo,
        *,
        settings: configuration.FanOutSettings,
) -> credentials.ConnectionInfo:
    """
    Write all TLS blobs that have no paths yet into temporary files.

    The original connection info is not modified; a new one is returned,
    with the paths pointing to the newly created files. If writing fails
    midway, the already written files are removed.
    """
    host = urllib.parse.urlsplit(info.server).netloc
    tempdir = settings.tlsfiles.tempdir
    changes = {}
    try:
        if info.ca_data and not info.ca_path:
            changes['ca_path'] = _write_tempfile(f'{host}-ca.crt-', info.ca_data, tempdir)
        if info.certificate_data and not info.certificate_path:
            changes['certificate_path'] = _write_tempfile(f'{host}-client.crt-', info.certificate_data, tempdir)
        if info.private_key_data and not info.private_key_path:
            changes['private_key_path'] = _write_tempfile(f'{host}-client.key-', info.private_key_data, tempdir)
    except BaseException:
        for path in changes.values():
            _delete_file(path)
        raise
    return dataclasses.replace(info, **changes)


def delete_tls_files(
        info: credentials.ConnectionInfo,
) -> credentials.ConnectionInfo:
    """
    Delete the files referenced by the connection info; reset their paths.

    The files that do not exist (e.g. already deleted) are not an error.
    """
    changes = {}
    for field in ['ca_path', 'certificate_path', 'private_key_path']:
        path: Optional[str] = getattr(info, field)
        if path:
            _delete_file(path)
            changes[field] = None
    return dataclasses.replace(info, **changes)


@contextlib.contextmanager
def tls_files(
        info: credentials.ConnectionInfo,
        *,
        settings: configuration.FanOutSettings,
) -> Iterator[credentials.ConnectionInfo]:
    """
    Keep the TLS blobs as files for the duration of a block; always release.

    Only the files created here are deleted on exit; the files that were
    referenced by the paths of the original connection info are kept intact.
    """
    materialized = generate_tls_files(info, settings=settings)
    try:
        yield materialized
    finally:
        delete_tls_files(dataclasses.replace(
            materialized,
            ca_path=None if info.ca_path else materialized.ca_path,
            certificate_path=None if info.certificate_path else materialized.certificate_path,
            private_key_path=None if info.private_key_path else materialized.private_key_path,
        ))


def _write_tempfile(prefix: str, data: Union[str, bytes], tempdir: Optional[str]) -> str:
    fd, path = tempfile.mkstemp(prefix=prefix, dir=tempdir)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(auth.decode_blob(data))
    except BaseException:
        _delete_file(path)
        raise
    logger.debug(f"Written a temporary TLS file: {path}")
    return path


def _delete_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
