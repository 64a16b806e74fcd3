"""
Authentication-related structures.

The library does not authenticate on its own: it receives the credentials
from a caller (usually, a higher-level controller that knows the clusters)
and uses them as is for the duration of one call. For that, a minimally
sufficient data structure is introduced -- to bring all the credentials
together in a structured and type-annotated way.

The credentials are defined as the information passed to the HTTP protocol
and TCP/SSL connection only, i.e. everything usable in a generic HTTP client,
and nothing more than that:

* TCP server host & port.
* SSL verification/ignorance flag.
* SSL certificate authority.
* SSL client certificate and its private key.
* HTTP ``Authorization: Basic username:password``.
* HTTP ``Authorization: Bearer token`` (or other schemes: Bearer, Digest, etc).
* URL's default namespace for the cases when this is implied.
"""
import dataclasses
from typing import Optional, Union


class LoginError(Exception):
    """ Raised when the credentials cannot be built from the sources. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific credentials and connection flags to use.

    The ``*_data`` fields hold the TLS blobs: bytes are used as they are,
    strings are either the PEM text or base64-encoded (as in kubeconfigs).
    The ``*_path`` fields point to the files with them.
    """
    server: str  # e.g. "https://localhost:443"
    ca_path: Optional[str] = None
    ca_data: Optional[Union[str, bytes]] = None
    insecure: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None  # RFC-7235/5.1: e.g. Bearer, Basic, Digest, etc.
    token: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_data: Optional[Union[str, bytes]] = None
    private_key_path: Optional[str] = None
    private_key_data: Optional[Union[str, bytes]] = None
    default_namespace: Optional[str] = None

    def __repr__(self) -> str:
        # Never leak the secrets to the logs, even in the debug mode.
        return f'{self.__class__.__name__}(server={self.server!r})'
