"""
Rudimentary logins from the well-known sources of the credentials.

The library is not an authentication library. It normally receives
the ready-to-use credentials from the caller. But for the command-line usage
and for trivial cases, the credentials can be taken from a kubeconfig file
or from the in-cluster service account -- with no auth-providers, no token
refreshing, and no other sophisticated multi-step token retrievals.
"""
import os
from typing import Any, Dict, Optional

import yaml

from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import credentials

# As per https://kubernetes.io/docs/tasks/run-application/access-api-from-pod/
SERVICE_ACCOUNT_DIR = '/var/run/secrets/kubernetes.io/serviceaccount'
DEFAULT_KUBECONFIG = '~/.kube/config'


def login(
        *,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        logger: Optional[typedefs.Logger] = None,
) -> credentials.ConnectionInfo:
    """
    Get the credentials from a kubeconfig if there is one, else from a service account.
    """
    info = login_with_kubeconfig(kubeconfig=kubeconfig, context=context)
    if info is not None:
        if logger is not None:
            logger.debug("Logged in via a kubeconfig file.")
        return info
    info = login_with_service_account()
    if info is not None:
        if logger is not None:
            logger.debug("Logged in with the in-cluster service account.")
        return info
    raise credentials.LoginError("Cannot authenticate neither via kubeconfig, nor in-cluster.")


def login_with_service_account(
        *,
        root: str = SERVICE_ACCOUNT_DIR,
) -> Optional[credentials.ConnectionInfo]:
    """
    A minimalistic login that can get raw data from a service account.
    """
    token_path = os.path.join(root, 'token')
    ns_path = os.path.join(root, 'namespace')
    ca_path = os.path.join(root, 'ca.crt')

    if os.path.exists(token_path):
        with open(token_path, encoding='utf-8') as f:
            token = f.read().strip()

        namespace: Optional[str] = None
        if os.path.exists(ns_path):
            with open(ns_path, encoding='utf-8') as f:
                namespace = f.read().strip()

        return credentials.ConnectionInfo(
            server='https://kubernetes.default.svc',
            ca_path=ca_path if os.path.exists(ca_path) else None,
            token=token or None,
            default_namespace=namespace or None,
        )
    else:
        return None


def login_with_kubeconfig(
        *,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
) -> Optional[credentials.ConnectionInfo]:
    """
    A minimalistic login that can get raw data from the kubeconfig files.

    The files are taken from the argument, or ``$KUBECONFIG``, or the default
    location. Several files can be separated by the path separator (``:``);
    the first value found wins, as prescribed for kubeconfigs.
    """

    # As per https://kubernetes.io/docs/concepts/configuration/organize-cluster-access-kubeconfig/
    kubeconfig = kubeconfig or os.environ.get('KUBECONFIG')
    if not kubeconfig and os.path.exists(os.path.expanduser(DEFAULT_KUBECONFIG)):
        kubeconfig = DEFAULT_KUBECONFIG
    if not kubeconfig:
        return None

    paths = [path.strip() for path in kubeconfig.split(os.pathsep)]
    paths = [os.path.expanduser(path) for path in paths if path]

    # As prescribed: if the file is absent or non-deserialisable, then fail. The first value wins.
    current_context: Optional[str] = context
    contexts: Dict[Any, Any] = {}
    clusters: Dict[Any, Any] = {}
    users: Dict[Any, Any] = {}
    for path in paths:

        with open(path, encoding='utf-8') as f:
            config = yaml.safe_load(f.read()) or {}

        if current_context is None:
            current_context = config.get('current-context')
        for item in config.get('contexts') or []:
            if item['name'] not in contexts:
                contexts[item['name']] = item.get('context') or {}
        for item in config.get('clusters') or []:
            if item['name'] not in clusters:
                clusters[item['name']] = item.get('cluster') or {}
        for item in config.get('users') or []:
            if item['name'] not in users:
                users[item['name']] = item.get('user') or {}

    # Once fully parsed, use the current context only.
    if current_context is None:
        raise credentials.LoginError('Current context is not set in kubeconfigs.')
    try:
        kubecontext = contexts[current_context]
        cluster = clusters[kubecontext['cluster']]
        user = users.get(kubecontext.get('user'), {})
    except KeyError as e:
        raise credentials.LoginError(f'The kubeconfig context {current_context!r} is broken: {e}') from e

    # There is no token refreshing: the auth-provider's token is used as it is now.
    provider_token = user.get('auth-provider', {}).get('config', {}).get('access-token')

    # Map the retrieved fields into the credentials object.
    return credentials.ConnectionInfo(
        server=cluster.get('server'),
        ca_path=cluster.get('certificate-authority'),
        ca_data=cluster.get('certificate-authority-data'),
        insecure=cluster.get('insecure-skip-tls-verify'),
        certificate_path=user.get('client-certificate'),
        certificate_data=user.get('client-certificate-data'),
        private_key_path=user.get('client-key'),
        private_key_data=user.get('client-key-data'),
        username=user.get('username'),
        password=user.get('password'),
        token=user.get('token') or provider_token,
        default_namespace=kubecontext.get('namespace'),
    )
