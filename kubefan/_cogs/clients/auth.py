import base64
import contextlib
import os
import ssl
import tempfile
from types import TracebackType
from typing import Dict, List, Optional, Type, Union

import aiohttp

from kubefan._cogs.helpers import versions
from kubefan._cogs.structs import credentials


class APIContext:
    """
    A container for an aiohttp session and the info of the connection.

    The container is constructed for every top-level operation (list, delete,
    watch, resolve) and is closed when the operation is over: there is no
    caching of the sessions or credentials across the operations, and there is
    no re-authentication -- a failed authentication fails the operation.

    Usage::

        async with APIContext(connection) as context:
            await api.get('/version', context=context, ...)
    """

    # The main contained object used by the API methods.
    session: aiohttp.ClientSession

    # Contextual information for URL building.
    server: str
    default_namespace: Optional[str]

    # List of open responses.
    responses: List[aiohttp.ClientResponse]

    def __init__(
            self,
            info: credentials.ConnectionInfo,
    ) -> None:
        super().__init__()
        if not isinstance(info, credentials.ConnectionInfo):
            raise TypeError(f"Unsupported credentials type: {info!r}")

        self.session = self.make_aiohttp_session(info)
        self.session.headers['User-Agent'] = f'kubefan/{versions.version or "unknown"}'

        # Add the extra payload information. We avoid overriding the constructor.
        self.server = info.server
        self.default_namespace = info.default_namespace

        self.responses = []

    async def __aenter__(self) -> "APIContext":
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    def make_aiohttp_session(self, info: credentials.ConnectionInfo) -> aiohttp.ClientSession:

        # Some SSL data are not accepted directly, so we have to use temp files.
        # Do not even create temporary files if there is no need. It can be a readonly filesystem.
        with contextlib.ExitStack() as stack:

            cert_path: Union[str, os.PathLike, None]
            if info.certificate_path:
                cert_path = info.certificate_path
            elif info.certificate_data:
                cert_file = stack.enter_context(tempfile.NamedTemporaryFile(buffering=0))
                cert_file.write(decode_blob(info.certificate_data))
                cert_path = cert_file.name
            else:
                cert_path = None

            pkey_path: Union[str, os.PathLike, None]
            if info.private_key_path:
                pkey_path = info.private_key_path
            elif info.private_key_data:
                pkey_file = stack.enter_context(tempfile.NamedTemporaryFile(buffering=0))
                pkey_file.write(decode_blob(info.private_key_data))
                pkey_path = pkey_file.name
            else:
                pkey_path = None

            # The SSL part (both client certificate auth and CA verification).
            context = ssl.create_default_context(
                purpose=ssl.Purpose.SERVER_AUTH,
                cafile=info.ca_path,
                cadata=make_cadata(info.ca_data) if info.ca_data is not None else None,
            )
            if cert_path and pkey_path:
                context.load_cert_chain(certfile=cert_path, keyfile=pkey_path)

        if info.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        # The token auth part.
        headers: Dict[str, str] = {}
        if info.scheme and info.token:
            headers['Authorization'] = f'{info.scheme} {info.token}'
        elif info.scheme:
            headers['Authorization'] = f'{info.scheme}'
        elif info.token:
            headers['Authorization'] = f'Bearer {info.token}'

        # The basic auth part.
        auth: Optional[aiohttp.BasicAuth]
        if info.username and info.password:
            auth = aiohttp.BasicAuth(info.username, info.password)
        else:
            auth = None

        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=0,
                ssl=context,
            ),
            headers=headers,
            auth=auth,
        )

    def add_response(self, response: aiohttp.ClientResponse) -> None:
        # Keep track of the streaming responses, so that they are closed with the session.
        self.responses[:] = [_response for _response in self.responses if not _response.closed]
        if not response.closed:
            self.responses.append(response)

    async def close(self) -> None:
        for response in self.responses:
            if not response.closed:
                response.close()
        self.responses.clear()
        await self.session.close()


def decode_blob(data: Union[str, bytes]) -> bytes:
    """
    Convert a TLS blob of the connection info to the raw bytes.

    Bytes are taken as they are: PEM, DER, or PEM with the openssl headers.
    Strings are either the PEM text or the base64-encoded ``*-data`` fields
    of kubeconfigs.
    """
    if isinstance(data, bytes):
        return data
    elif data.lstrip().startswith('-----BEGIN '):
        return data.encode('ascii')
    else:
        return base64.b64decode(data)


def make_cadata(data: Union[str, bytes]) -> Union[str, bytes]:
    # SSL contexts accept the PEM certificates as text, and DER as bytes.
    blob = decode_blob(data)
    return blob.decode('ascii') if b'-----BEGIN ' in blob else blob
