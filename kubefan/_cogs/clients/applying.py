"""
Applying the resources via ``kubectl apply``.

The server-side merging of the manifests (3-way merges, last-applied
annotations, strategic merge patches) is complicated enough to not be
re-implemented here: the official tool is used instead, as a subprocess.
"""
import asyncio
import json
import logging
from typing import List, Optional

from kubefan._cogs.clients import tlsfiles
from kubefan._cogs.configs import configuration
from kubefan._cogs.structs import bodies, credentials, references

logger = logging.getLogger(__name__)


class ApplyError(Exception):
    """ ``kubectl apply`` has failed; the message is the tool's stderr. """


def make_kubectl_options(info: credentials.ConnectionInfo) -> List[str]:
    """
    Convert the connection info to the equivalent ``kubectl`` flags.

    The TLS data must be materialized as files beforehand: ``kubectl``
    accepts only the paths, not the data (see `tlsfiles.tls_files`).
    """
    options = ['--server', info.server]
    if info.insecure:
        options.append('--insecure-skip-tls-verify=true')
    if info.ca_path:
        options.extend(['--certificate-authority', info.ca_path])
    elif info.ca_data:
        raise ValueError("Cannot generate kubectl options with the CA data: paths are needed.")
    if info.certificate_path:
        options.extend(['--client-certificate', info.certificate_path])
    elif info.certificate_data:
        raise ValueError("Cannot generate kubectl options with the certificate data: paths are needed.")
    if info.private_key_path:
        options.extend(['--client-key', info.private_key_path])
    elif info.private_key_data:
        raise ValueError("Cannot generate kubectl options with the private key data: paths are needed.")
    if info.username:
        options.extend(['--username', info.username])
    if info.password:
        options.extend(['--password', info.password])
    if info.token:
        options.extend(['--token', info.token])
    return options


async def apply_resource(
        info: credentials.ConnectionInfo,
        body: bodies.RawBody,
        namespace: references.Namespace,
        *,
        settings: Optional[configuration.FanOutSettings] = None,
) -> bodies.RawBody:
    """
    Apply the object to the cluster and return the resulting live object.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    kind, name = body.get('kind'), bodies.get_name(body)
    namespace = namespace or info.default_namespace or 'default'
    logger.info(f"Applying the resource {kind}/{name} in {info.server}, namespace {namespace!r}.")

    payload = json.dumps(body).encode('utf-8')
    with tlsfiles.tls_files(info, settings=settings) as materialized:
        args = make_kubectl_options(materialized)
        args.extend(['-n', namespace, 'apply', '-o', 'json', '-f', '-'])
        proc = await asyncio.create_subprocess_exec(
            settings.applying.kubectl, *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await proc.communicate(payload)
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise

    if proc.returncode != 0:
        raise ApplyError(f"Failed to apply {name!r}: {stderr.decode('utf-8', errors='replace')}")
    try:
        live: bodies.RawBody = json.loads(stdout.decode('utf-8'))
    except ValueError as e:
        raise ApplyError(f"Failed to apply {name!r}: {e}") from e
    return live
