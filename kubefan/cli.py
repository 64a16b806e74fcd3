import asyncio
import functools
import json
from typing import Any, AsyncIterator, Callable, List, Optional

import click
import yaml

from kubefan._cogs.clients import applying, errors
from kubefan._cogs.structs import bodies, credentials, references
from kubefan._core.actions import loggers
from kubefan._core.engines import deleting, listing, resolving, watching
from kubefan._core.intents import piggybacking


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        if isinstance(value, loggers.LogFormat):
            return value
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = None,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def login_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to log in from the same sources in all commands. """
    @click.option('--kubeconfig', type=str, envvar='KUBECONFIG')
    @click.option('--context', 'kubecontext', type=str)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(kubeconfig: Optional[str], kubecontext: Optional[str], *args: Any, **kwargs: Any) -> Any:
        try:
            connection = piggybacking.login(kubeconfig=kubeconfig, context=kubecontext)
        except credentials.LoginError as e:
            raise click.ClickException(str(e))
        return fn(*args, connection=connection, **kwargs)

    return wrapper


output_options = click.option('-o', '--output', type=click.Choice(['json', 'yaml']), default='json')


def echo_objs(objs: Any, output: str) -> None:
    if output == 'yaml':
        click.echo(yaml.safe_dump(objs, sort_keys=False), nl=False)
    else:
        click.echo(json.dumps(objs, indent=2))


def load_manifests(path: str) -> List[bodies.RawBody]:
    with open(path, encoding='utf-8') as f:
        return [doc for doc in yaml.safe_load_all(f) if doc]


@click.version_option(prog_name='kubefan')
@click.group(name='kubefan', context_settings=dict(
    auto_envvar_prefix='KUBEFAN',
))
def main() -> None:
    pass


@main.command(name='list')
@logging_options
@login_options
@output_options
@click.option('-n', '--namespace', type=str, default=None)
@click.argument('key')
@click.argument('value')
def list_(
        connection: credentials.ConnectionInfo,
        namespace: Optional[str],
        key: str,
        value: str,
        output: str,
) -> None:
    """ List the objects of all resource types with the label. """
    try:
        objs = asyncio.run(listing.list_by_label(
            connection, _namespace(namespace), key, value,
        ))
    except (errors.AggregateError, errors.DiscoveryError) as e:
        raise click.ClickException(str(e))
    echo_objs(objs, output)


@main.command()
@logging_options
@login_options
@click.option('-n', '--namespace', type=str, default=None)
@click.argument('key')
@click.argument('value')
def delete(
        connection: credentials.ConnectionInfo,
        namespace: Optional[str],
        key: str,
        value: str,
) -> None:
    """ Delete the objects of all resource types with the label. """
    try:
        asyncio.run(deleting.delete_by_label(
            connection, _namespace(namespace), key, value,
        ))
    except (errors.AggregateError, errors.DiscoveryError) as e:
        raise click.ClickException(str(e))


@main.command()
@logging_options
@login_options
@click.option('-n', '--namespace', type=str, default=None)
@click.option('-t', '--timeout', type=float, default=None)
@click.argument('label')
def watch(
        connection: credentials.ConnectionInfo,
        namespace: Optional[str],
        timeout: Optional[float],
        label: str,
) -> None:
    """ Stream the events of the objects with the label as JSON lines. """
    async def _watch() -> None:
        stop_flag = asyncio.Event()
        if timeout is not None:
            asyncio.get_running_loop().call_later(timeout, stop_flag.set)
        stream: AsyncIterator[bodies.RawEvent] = watching.watch_by_label(
            connection, _namespace(namespace), label, stop_flag=stop_flag,
        )
        async for raw_event in stream:
            click.echo(json.dumps(raw_event))

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        pass
    except (errors.DiscoveryError, errors.TransportError) as e:
        raise click.ClickException(str(e))


@main.command()
@logging_options
@login_options
@output_options
@click.option('-n', '--namespace', type=str, default=None)
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def resolve(
        connection: credentials.ConnectionInfo,
        namespace: Optional[str],
        path: str,
        output: str,
) -> None:
    """ Show the live objects for the manifests in a file (null if absent). """
    manifests = load_manifests(path)
    try:
        objs = asyncio.run(resolving.resolve_many(connection, manifests, _namespace(namespace)))
    except (ValueError, errors.NotServable, errors.DiscoveryError, errors.TransportError) as e:
        raise click.ClickException(str(e))
    echo_objs(objs, output)


@main.command()
@logging_options
@login_options
@output_options
@click.option('-n', '--namespace', type=str, default=None)
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def apply(
        connection: credentials.ConnectionInfo,
        namespace: Optional[str],
        path: str,
        output: str,
) -> None:
    """ Apply the manifests from a file with kubectl, show the live objects. """
    async def _apply() -> List[bodies.RawBody]:
        return [
            await applying.apply_resource(connection, manifest, _namespace(namespace))
            for manifest in load_manifests(path)
        ]

    try:
        objs = asyncio.run(_apply())
    except applying.ApplyError as e:
        raise click.ClickException(str(e))
    echo_objs(objs, output)


@main.command()
@logging_options
@login_options
@output_options
def version(
        connection: credentials.ConnectionInfo,
        output: str,
) -> None:
    """ Check the connection to the cluster and show its version. """
    try:
        info = asyncio.run(resolving.check_connection(connection))
    except errors.TransportError as e:
        raise click.ClickException(str(e))
    echo_objs(dict(info), output)


def _namespace(namespace: Optional[str]) -> references.Namespace:
    return references.NamespaceName(namespace) if namespace else None
