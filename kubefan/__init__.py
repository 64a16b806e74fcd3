"""
The main kubefan module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubefan._cogs.aiokits.aioadapters import (
    Flag,
)
from kubefan._cogs.clients.applying import (
    ApplyError,
    apply_resource,
    make_kubectl_options,
)
from kubefan._cogs.clients.auth import (
    APIContext,
)
from kubefan._cogs.clients.errors import (
    TransportError,
    APIError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    DiscoveryError,
    NotServable,
    AggregateError,
)
from kubefan._cogs.clients.handles import (
    ResourceHandle,
)
from kubefan._cogs.clients.scanning import (
    scan_resources,
    find_resource,
    read_version,
)
from kubefan._cogs.clients.tlsfiles import (
    generate_tls_files,
    delete_tls_files,
    tls_files,
)
from kubefan._cogs.clients.watching import (
    WatchingError,
)
from kubefan._cogs.configs.configuration import (
    FanOutSettings,
    NetworkingSettings,
    WatchingSettings,
    TLSFilesSettings,
    ApplySettings,
)
from kubefan._cogs.helpers.typedefs import (
    Logger,
)
from kubefan._cogs.helpers.versions import (
    version as __version__,
)
from kubefan._cogs.structs.bodies import (
    RawEventType,
    RawEvent,
    RawBody,
    RawMeta,
    Labels,
    Annotations,
    Identity,
    get_identity,
)
from kubefan._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
)
from kubefan._cogs.structs.references import (
    Resource,
    Namespace,
    NamespaceName,
)
from kubefan._cogs.structs.selectors import (
    LabelSelector,
)
from kubefan._core.actions.capabilities import (
    LIST,
    WATCH,
    DELETE,
    DELETECOLLECTION,
    PROPAGATION_POLICY,
    DeletionStrategy,
    supports,
    select,
    pick_deletion_strategy,
)
from kubefan._core.actions.loggers import (
    LogFormat,
    configure,
)
from kubefan._core.actions.merging import (
    merge,
)
from kubefan._core.engines.deleting import (
    delete_by_label,
)
from kubefan._core.engines.listing import (
    list_by_label,
)
from kubefan._core.engines.resolving import (
    resolve,
    resolve_many,
    list_all,
    check_connection,
)
from kubefan._core.engines.watching import (
    watch_by_label,
)
from kubefan._core.intents.piggybacking import (
    login,
    login_with_kubeconfig,
    login_with_service_account,
)

__all__ = [
    'Flag',
    'ApplyError', 'apply_resource', 'make_kubectl_options',
    'APIContext',
    'TransportError',
    'APIError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'DiscoveryError',
    'NotServable',
    'AggregateError',
    'WatchingError',
    'ResourceHandle',
    'scan_resources', 'find_resource', 'read_version',
    'generate_tls_files', 'delete_tls_files', 'tls_files',
    'FanOutSettings',
    'NetworkingSettings',
    'WatchingSettings',
    'TLSFilesSettings',
    'ApplySettings',
    'Logger',
    'RawEventType', 'RawEvent', 'RawBody', 'RawMeta',
    'Labels', 'Annotations', 'Identity', 'get_identity',
    'LoginError', 'ConnectionInfo',
    'Resource', 'Namespace', 'NamespaceName',
    'LabelSelector',
    'LIST', 'WATCH', 'DELETE', 'DELETECOLLECTION', 'PROPAGATION_POLICY',
    'DeletionStrategy', 'supports', 'select', 'pick_deletion_strategy',
    'LogFormat', 'configure',
    'merge',
    'list_by_label',
    'delete_by_label',
    'watch_by_label',
    'resolve', 'resolve_many', 'list_all', 'check_connection',
    'login', 'login_with_kubeconfig', 'login_with_service_account',
]
