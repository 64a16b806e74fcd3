import base64
from unittest.mock import Mock

import aiohttp
import pytest

from kubefan._cogs.clients.auth import APIContext, decode_blob, make_cadata
from kubefan._cogs.structs.credentials import ConnectionInfo

SAMPLE_PEM = '-----BEGIN CERTIFICATE-----\nfake\n-----END CERTIFICATE-----\n'


async def test_unsupported_credentials():
    with pytest.raises(TypeError):
        APIContext(object())  # type: ignore


async def test_session_is_closed_on_exit():
    async with APIContext(ConnectionInfo(server='https://localhost')) as context:
        session = context.session
        assert not session.closed
    assert session.closed


async def test_server_and_default_namespace_are_kept():
    info = ConnectionInfo(server='https://localhost', default_namespace='ns')
    async with APIContext(info) as context:
        assert context.server == 'https://localhost'
        assert context.default_namespace == 'ns'


async def test_user_agent_is_set():
    async with APIContext(ConnectionInfo(server='https://localhost')) as context:
        assert context.session.headers['User-Agent'].startswith('kubefan/')


@pytest.mark.parametrize('scheme, token, expected', [
    (None, 'tkn', 'Bearer tkn'),
    ('Digest', 'tkn', 'Digest tkn'),
    ('Custom', None, 'Custom'),
])
async def test_authorization_header(scheme, token, expected):
    info = ConnectionInfo(server='https://localhost', scheme=scheme, token=token)
    async with APIContext(info) as context:
        assert context.session.headers['Authorization'] == expected


async def test_no_authorization_header_without_tokens():
    async with APIContext(ConnectionInfo(server='https://localhost')) as context:
        assert 'Authorization' not in context.session.headers


async def test_basic_auth():
    info = ConnectionInfo(server='https://localhost', username='user', password='pass')
    async with APIContext(info) as context:
        assert context.session.auth == aiohttp.BasicAuth('user', 'pass')


async def test_open_responses_are_closed_with_the_context():
    response1 = Mock(closed=False)
    response2 = Mock(closed=True)
    async with APIContext(ConnectionInfo(server='https://localhost')) as context:
        context.add_response(response1)
        context.add_response(response2)
        assert context.responses == [response1]
    assert response1.close.called
    assert context.responses == []


def test_pem_text_is_encoded_as_is():
    assert decode_blob(SAMPLE_PEM) == SAMPLE_PEM.encode('ascii')
    assert decode_blob('\n' + SAMPLE_PEM) == ('\n' + SAMPLE_PEM).encode('ascii')


def test_base64_text_is_decoded():
    encoded = base64.b64encode(SAMPLE_PEM.encode('ascii')).decode('ascii')
    assert decode_blob(encoded) == SAMPLE_PEM.encode('ascii')


@pytest.mark.parametrize('data', [
    SAMPLE_PEM.encode('ascii'),
    base64.b64encode(SAMPLE_PEM.encode('ascii')),
    b'\x30\x82\x01\x0a\xff\x00\x9c',
])
def test_bytes_are_kept_as_is(data):
    assert decode_blob(data) == data


def test_cadata_is_pem_text_or_der_bytes():
    assert make_cadata(SAMPLE_PEM.encode('ascii')) == SAMPLE_PEM
    assert make_cadata(b'\x30\x82\x01\x0a') == b'\x30\x82\x01\x0a'
