"""Tests for fleet notification (notify.py)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from sheep.exceptions import NotificationError
from sheep.notify import NetworkInterface, PxePilotClient, list_interfaces, notify_fleet


def _session_with_statuses(statuses):
    """Mock aiohttp.ClientSession whose successive PUTs answer the given statuses."""
    responses = []
    for status in statuses:
        response = MagicMock()
        response.status = status
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=None)
        responses.append(context)

    mock_session = MagicMock()
    mock_session.put.side_effect = responses
    return mock_session


@pytest.fixture
def client():
    return PxePilotClient("http://pxepilot:3478/", "local")


@pytest.fixture
def interfaces():
    return [
        NetworkInterface("eth0", "52:54:00:00:00:01"),
        NetworkInterface("eth1", "52:54:00:00:00:02"),
        NetworkInterface("eth2", "52:54:00:00:00:03"),
    ]


class TestPxePilotClientInit:
    """Test PxePilotClient initialization."""

    def test_deploy_url(self, client):
        assert client.base_url == "http://pxepilot:3478"
        assert client.deploy_url == "http://pxepilot:3478/v1/configurations/local/deploy"

    def test_timeout(self):
        assert PxePilotClient("http://x", "local", timeout_seconds=5).timeout.total == 5


class TestDeploy:
    """Test a single deploy request."""

    @pytest.mark.asyncio
    async def test_success_payload(self, client):
        mock_session = _session_with_statuses([200])

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            assert await client.deploy("52:54:00:00:00:01") is True

        mock_session.put.assert_called_once_with(
            "http://pxepilot:3478/v1/configurations/local/deploy",
            json={"hosts": [{"macAddress": "52:54:00:00:00:01"}]},
        )

    @pytest.mark.asyncio
    async def test_non_200_is_failure(self, client):
        mock_session = _session_with_statuses([404])

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            assert await client.deploy("52:54:00:00:00:01") is False

    @pytest.mark.asyncio
    async def test_network_error_is_failure(self, client):
        mock_session = MagicMock()
        mock_session.put.side_effect = aiohttp.ClientError("connection refused")

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            assert await client.deploy("52:54:00:00:00:01") is False

    @pytest.mark.asyncio
    async def test_timeout_is_failure(self, client):
        mock_session = MagicMock()
        mock_session.put.side_effect = asyncio.TimeoutError()

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            assert await client.deploy("52:54:00:00:00:01") is False


class TestNotify:
    """Test trying interfaces in order."""

    @pytest.mark.asyncio
    async def test_stops_at_first_accepted_interface(self, client, interfaces):
        mock_session = _session_with_statuses([404, 500, 200])

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            accepted = await client.notify(interfaces)

        assert accepted == interfaces[2]
        assert mock_session.put.call_count == 3

    @pytest.mark.asyncio
    async def test_first_interface_accepted(self, client, interfaces):
        mock_session = _session_with_statuses([200])

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            accepted = await client.notify(interfaces)

        assert accepted == interfaces[0]
        assert mock_session.put.call_count == 1

    @pytest.mark.asyncio
    async def test_slow_interface_moves_on_to_next(self, client, interfaces):
        accepted_response = MagicMock()
        accepted_response.status = 200
        accepted_context = MagicMock()
        accepted_context.__aenter__ = AsyncMock(return_value=accepted_response)
        accepted_context.__aexit__ = AsyncMock(return_value=None)
        mock_session = MagicMock()
        mock_session.put.side_effect = [asyncio.TimeoutError(), accepted_context]

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            accepted = await client.notify(interfaces)

        assert accepted == interfaces[1]
        assert mock_session.put.call_count == 2

    @pytest.mark.asyncio
    async def test_all_rejected_raises_after_every_attempt(self, client, interfaces):
        mock_session = _session_with_statuses([404, 404, 404])

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_session_class.return_value.__aexit__ = AsyncMock(return_value=None)

            with pytest.raises(NotificationError) as exc_info:
                await client.notify(interfaces)

        assert exc_info.value.attempts == 3
        assert mock_session.put.call_count == 3

    @pytest.mark.asyncio
    async def test_no_interfaces(self, client):
        with pytest.raises(NotificationError) as exc_info:
            await client.notify([])

        assert exc_info.value.attempts == 0


class TestListInterfaces:
    """Tests for list_interfaces()."""

    def test_skips_loopback_and_null_mac(self, tmp_path):
        for name, mac in (
            ("lo", "00:00:00:00:00:00"),
            ("eth1", "52:54:00:AA:BB:02\n"),
            ("eth0", "52:54:00:aa:bb:01\n"),
            ("dummy0", "00:00:00:00:00:00\n"),
        ):
            (tmp_path / name).mkdir()
            (tmp_path / name / "address").write_text(mac)

        assert list_interfaces(tmp_path) == [
            NetworkInterface("eth0", "52:54:00:aa:bb:01"),
            NetworkInterface("eth1", "52:54:00:aa:bb:02"),
        ]

    def test_missing_directory(self, tmp_path):
        assert list_interfaces(tmp_path / "missing") == []


class TestNotifyFleet:
    """Tests for the synchronous notify_fleet() wrapper."""

    def test_uses_discovered_interfaces(self, tmp_path):
        (tmp_path / "eth0").mkdir()
        (tmp_path / "eth0" / "address").write_text("52:54:00:aa:bb:01\n")

        with patch.object(PxePilotClient, "deploy", AsyncMock(return_value=True)) as mock_deploy:
            accepted = notify_fleet("http://pxepilot:3478", "local", tmp_path)

        assert accepted == NetworkInterface("eth0", "52:54:00:aa:bb:01")
        mock_deploy.assert_awaited_once_with("52:54:00:aa:bb:01")
