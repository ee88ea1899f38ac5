"""
Tests for the HubClient wiring.

Feature: hubgate
"""

import logging
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest

from hubgate.client import HubClient
from hubgate.config import Settings
from hubgate.debug import DebugSettings
from hubgate.exceptions import IntegrityError
from hubgate.offline import OfflineMode
from hubgate.testing import StaticConfigStore, repository_payload
from hubgate.transport import HTTPTransport, RetryConfig


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def hub(requests_seen: list[httpx.Request], tmp_path: Path) -> Iterator[HubClient]:
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        if request.url.path == "/rate_limit":
            return httpx.Response(200, json={"resources": {}})
        if request.url.path == "/repos/octocat/hello-world":
            return httpx.Response(200, json=repository_payload())
        return httpx.Response(404, json={"message": "Not Found"})

    transport = HTTPTransport(
        retry_config=RetryConfig(max_retries=0),
        http_transport=httpx.MockTransport(handler),
    )
    settings = Settings(helper_config=tmp_path / "hub", features="all,-commit-browse")
    client = HubClient(
        settings,
        config_store=StaticConfigStore(remotes={"origin": "git@github.com:octocat/hello-world"}),
        transport=transport,
    )
    yield client
    client.close()


class TestHubClient:
    def test_resolve_end_to_end(self, hub: HubClient, requests_seen: list[httpx.Request]) -> None:
        repo = hub.resolve()

        assert repo is not None
        assert repo.full_name == "octocat/hello-world"
        assert [r.url.path for r in requests_seen] == ["/rate_limit", "/repos/octocat/hello-world"]

    def test_identity(self, hub: HubClient) -> None:
        identity = hub.identity()

        assert identity is not None
        assert identity.full_name == "octocat/hello-world"

    def test_offline_toggles(self, hub: HubClient, requests_seen: list[httpx.Request]) -> None:
        assert hub.go_offline() is True
        assert hub.is_available() is False
        assert hub.toggle_offline() is False
        assert hub.go_online() is False
        assert hub.is_available() is True

        assert [r.url.path for r in requests_seen] == ["/rate_limit"]

    def test_hard_refresh_restores(self, hub: HubClient) -> None:
        with hub.hard_refresh() as previous:
            assert previous is OfflineMode.DEFAULT
            assert hub.offline.is_offline()

        assert hub.offline.mode is OfflineMode.DEFAULT

    def test_features_from_settings(self, hub: HubClient) -> None:
        assert hub.features.check("pull-request-merge") is True
        assert hub.features.check("commit-browse") is False

    def test_runner_from_settings(self, hub: HubClient, tmp_path: Path) -> None:
        assert hub.runner.executable == "hub"
        assert hub.runner.config_file == tmp_path / "hub"
        assert hub.runner.timeout == 5.0

    def test_report_includes_mode(self, hub: HubClient) -> None:
        report = hub.report(IntegrityError("bad cache", {"key": "k"}))

        assert "offline_mode: 'default'" in report.body
        assert "key: 'k'" in report.body

    def test_enterprise_hosts_get_their_own_transport(self, tmp_path: Path) -> None:
        settings = Settings(
            token="github-token",
            enterprise_token="enterprise-token",
            helper_config=tmp_path / "hub",
        )

        with HubClient(settings, config_store=StaticConfigStore()) as client:
            enterprise = client.repos.transport_for("ghe.corp.example")

            assert enterprise is not None
            assert enterprise is not client.transport
            assert enterprise.base_url == "https://ghe.corp.example/api/v3"
            assert enterprise._client.headers["Authorization"] == "Bearer enterprise-token"
            assert client.repos.transport_for("github.com") is client.transport

        assert enterprise._client.is_closed

    def test_github_token_stays_on_github(self, tmp_path: Path) -> None:
        settings = Settings(token="github-token", helper_config=tmp_path / "hub")

        with HubClient(settings, config_store=StaticConfigStore()) as client:
            enterprise = client.repos.transport_for("ghe.corp.example")

            assert enterprise is not None
            assert "Authorization" not in enterprise._client.headers

    def test_context_manager_closes_transport(self) -> None:
        with HubClient(Settings()) as client:
            transport = client.transport

        assert transport._client.is_closed


class TestFromEnv:
    def test_settings_flow_through(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HUBGATE_CACHE_MODE", "offline")
        monkeypatch.setenv("HUBGATE_THROTTLE_INTERVAL", "30")
        monkeypatch.setenv("HUBGATE_API_TIMEOUT", "2.5")

        with HubClient.from_env() as client:
            assert client.offline.mode is OfflineMode.FORCED_OFFLINE
            assert client.gate.throttle_interval == 30.0
            assert client.gate.api_timeout == 2.5

    def test_debug_raises_log_levels(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HUBGATE_DEBUG", "dry-run")

        with HubClient.from_env() as client:
            assert client.settings.debug == DebugSettings(enabled=True, dry_run=True)
            assert logging.getLogger("hubgate.http").isEnabledFor(logging.DEBUG)
            # dry-run: the probe never leaves the process
            assert client.is_available() is True
            assert client.gate.debug is client.settings.debug
            assert client.runner.debug is client.settings.debug

            client.settings.debug.enabled = False
            assert logging.getLogger("hubgate.http").level == logging.NOTSET
