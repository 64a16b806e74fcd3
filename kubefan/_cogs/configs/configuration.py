"""
All configuration flags, options, settings to fine-tune the orchestration.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

In this library, they are called *"settings"* (plural).
Combined, they form a *"configuration"* (singular).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).

The settings are resolved once when the object is created and then passed
explicitly into every call that needs them --- never read from global state.
"""
import dataclasses
import os
from typing import Optional

# A memory-backed filesystem is preferred for the credentials' temporary files.
SHARED_MEMORY_DIR = '/dev/shm'


def detect_tempdir() -> Optional[str]:
    """
    Detect the preferred directory for temporary files with TLS credentials.

    If the memory-backed filesystem exists, the secrets never touch the disk.
    Otherwise, ``None`` means the system's default temporary directory.
    """
    return SHARED_MEMORY_DIR if os.path.isdir(SHARED_MEMORY_DIR) else None


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the whole HTTP(S) request, from connecting to reading it all.
    It is used in the regular (non-streaming) requests: listing, reading,
    deleting, discovery.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for the connection establishment (incl. SSL handshakes).
    If ``None``, only the overall request timeout is in effect.
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request. Patched in some tests.
    If ``None``, then obey the server-side timeouts (they seem to be random).
    """

    client_timeout: Optional[float] = None
    """
    An HTTP/HTTPS session timeout to use in watch requests.
    If ``None``, the stream lasts for as long as the server keeps it open.
    """

    connect_timeout: Optional[float] = None
    """
    An HTTP/HTTPS connection timeout to use in watch requests.
    If ``None``, the networking settings' timeouts are used.
    """

    queue_size: int = 1024
    """
    How many events can be buffered between the per-type watchers
    and the single consumer of the merged stream. Once it is full,
    the watchers wait for the consumer to catch up.
    """


@dataclasses.dataclass
class TLSFilesSettings:

    tempdir: Optional[str] = dataclasses.field(default_factory=detect_tempdir)
    """
    Where to put the temporary files with the TLS credentials when they are
    needed as files (e.g. for ``kubectl``) but are only available in memory.
    ``None`` means the system's default temporary directory.
    """


@dataclasses.dataclass
class ApplySettings:

    kubectl: str = 'kubectl'
    """
    The executable (a name on ``$PATH`` or a full path) to use for applying.
    """


@dataclasses.dataclass
class FanOutSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
    tlsfiles: TLSFilesSettings = dataclasses.field(default_factory=TLSFilesSettings)
    applying: ApplySettings = dataclasses.field(default_factory=ApplySettings)
