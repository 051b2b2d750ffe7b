import httpx

from utils.http import client_session


async def test_injected_client_is_lent_and_left_open(mock_client):
    client = mock_client(lambda request: httpx.Response(204))

    async with client_session(client) as session:
        assert session is client
        response = await session.get("https://acme.test/")

    assert response.status_code == 204
    assert client.is_closed is False


async def test_own_client_follows_redirects_and_closes():
    async with client_session(timeout=3) as session:
        assert session.follow_redirects is True
        assert session.timeout.connect == 3

    assert session.is_closed is True
