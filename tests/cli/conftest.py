import functools
from unittest.mock import AsyncMock

import click.testing
import pytest

from kubefan._cogs.structs.credentials import ConnectionInfo
from kubefan.cli import main


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)


@pytest.fixture()
def login(mocker):
    return mocker.patch('kubefan._core.intents.piggybacking.login',
                        return_value=ConnectionInfo(server='https://fake-host'))


@pytest.fixture()
def list_by_label(mocker):
    return mocker.patch('kubefan._core.engines.listing.list_by_label', AsyncMock(return_value=[]))


@pytest.fixture()
def delete_by_label(mocker):
    return mocker.patch('kubefan._core.engines.deleting.delete_by_label', AsyncMock(return_value=None))


@pytest.fixture()
def resolve_many(mocker):
    return mocker.patch('kubefan._core.engines.resolving.resolve_many', AsyncMock(return_value=[]))


@pytest.fixture()
def check_connection(mocker):
    return mocker.patch('kubefan._core.engines.resolving.check_connection', AsyncMock(return_value={}))


@pytest.fixture()
def apply_resource(mocker):
    return mocker.patch('kubefan._cogs.clients.applying.apply_resource', AsyncMock(return_value={}))


@pytest.fixture()
def manifests(tmp_path):
    path = tmp_path / 'manifests.yaml'
    path.write_text(
        "apiVersion: v1\n"
        "kind: Pod\n"
        "metadata: {name: pod1}\n"
        "---\n"
        "---\n"
        "apiVersion: apps/v1\n"
        "kind: Deployment\n"
        "metadata: {name: web}\n"
    )
    return str(path)
