"""
All the structures coming from/to the Kubernetes API.

The usage of these classes is spread over the codebase, so they are extracted
into a separate module of such type definitions.

The resources are schema-less: the library handles the resource types that
are discovered at runtime, so nothing but the generic metadata is typed.
All non-used payload falls into `Any`, and is not type-checked.

The bodies are point-in-time snapshots of the objects as the server returned
them. The library never modifies them after they are delivered to the caller.
"""
from typing import Any, List, Mapping, Optional, Tuple, Union

from typing_extensions import Literal, TypedDict

from kubefan._cogs.structs import references

Labels = Mapping[str, str]
Annotations = Mapping[str, str]

#
# Everything marked "raw" is a plain unwrapped unprocessed data as JSON-decoded
# from Kubernetes API, usually as retrieved in watching or fetching API calls.
# "Input" is a parsed JSON as is, while "event" is an "input" without "errors".
#

RawInputType = Literal['ADDED', 'MODIFIED', 'DELETED', 'ERROR', 'BOOKMARK']
RawEventType = Literal['ADDED', 'MODIFIED', 'DELETED']


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    finalizers: List[str]
    resourceVersion: str
    deletionTimestamp: str
    creationTimestamp: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


# A special payload for type==ERROR (this is not a connection or client error).
class RawError(TypedDict, total=False):
    apiVersion: str     # usually: Literal['v1']
    kind: str           # usually: Literal['Status']
    metadata: Mapping[Any, Any]
    code: int
    reason: str
    status: str
    message: str


# As received from the stream before processing the errors and special cases.
class RawInput(TypedDict, total=True):
    type: RawInputType
    object: Union[RawBody, RawError]


# As passed to the consumers after processing the errors and special cases.
class RawEvent(TypedDict, total=True):
    type: RawEventType
    object: RawBody


# Either a server-assigned uid, or a full "coordinate" of the object if there is no uid.
Identity = Union[str, Tuple[str, str, str, str, str]]


def get_labels(body: RawBody) -> Labels:
    return body.get('metadata', {}).get('labels') or {}


def get_name(body: RawBody) -> Optional[str]:
    return body.get('metadata', {}).get('name') or None


def get_namespace(body: RawBody) -> Optional[str]:
    return body.get('metadata', {}).get('namespace') or None


def get_identity(body: RawBody) -> Identity:
    """
    Identify the object regardless of the API group & version it came from.

    The server-assigned uid is the same for an object seen via several API
    groups (e.g. ``extensions/v1beta1`` & ``apps/v1`` deployments).
    For the objects without uids (e.g. not yet stored), the object's full
    coordinate is used instead: group, version, kind, namespace, name.
    """
    uid = body.get('metadata', {}).get('uid')
    if uid:
        return uid
    group, version = references.parse_api_version(body.get('apiVersion', ''))
    return (
        group,
        version,
        body.get('kind', ''),
        get_namespace(body) or '',
        get_name(body) or '',
    )
