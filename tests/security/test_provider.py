"""Tests for credential acquisition, caching and role switching."""

import pytest

from dmesh.config import AwsConfig
from dmesh.security.errors import (
    AssumeRoleError,
    BrokerError,
    NoCredentialSourceError,
    TokenExpiredError,
)
from dmesh.security.provider import REFRESH_THRESHOLD, CredentialProvider, default_sources
from dmesh.security.sources import EnvironmentSource, ProfileSource, SSOSource
from dmesh.security.types import Role

from fakes import StaticSource


@pytest.fixture
def profile(clock) -> StaticSource:
    return StaticSource("profile", clock=clock)


@pytest.fixture
def environment(clock) -> StaticSource:
    return StaticSource("environment", clock=clock)


@pytest.fixture
def chain(config, clock, profile, environment, source) -> CredentialProvider:
    return CredentialProvider(config.aws, sources=[profile, environment, source], clock=clock)


class TestAcquire:
    def test_first_source_wins(self, chain, profile, environment, source):
        creds = chain.acquire()

        assert creds.source == "profile"
        assert profile.calls == 1
        assert environment.calls == 0
        assert source.calls == 0

    def test_falls_through_inapplicable_sources(self, chain, profile, environment, source):
        profile.available = False
        environment.available = False

        creds = chain.acquire()

        assert creds.source == "sso"
        assert [profile.calls, environment.calls, source.calls] == [1, 1, 1]

    def test_no_source_available(self, chain, profile, environment, source):
        for s in (profile, environment, source):
            s.available = False

        with pytest.raises(NoCredentialSourceError) as exc_info:
            chain.acquire()

        message = str(exc_info.value)
        assert "profile, environment, sso" in message
        assert "aws sso login" in message

    def test_expired_token_propagates(self, chain, profile, environment, source):
        profile.available = False
        environment.available = False
        source.error = TokenExpiredError("SSO token expired")

        with pytest.raises(TokenExpiredError):
            chain.acquire()

    def test_default_role_passed_to_sources(self, provider, source):
        provider.acquire()

        assert source.roles == [Role("Analyst", "123456789012")]

    def test_no_default_role(self, clock, source):
        provider = CredentialProvider(AwsConfig(), sources=[source], clock=clock)

        provider.acquire()

        assert provider.role is None
        assert source.roles == [None]


class TestCurrent:
    def test_acquires_on_first_use(self, provider, source):
        creds = provider.current()

        assert creds.source == "sso"
        assert source.calls == 1

    def test_reuses_fresh_credentials(self, provider, source, clock):
        first = provider.current()
        clock.advance(minutes=30)
        second = provider.current()
        clock.advance(minutes=20)
        third = provider.current()

        assert first is second is third
        assert source.calls == 1

    def test_refresh_at_threshold_is_not_triggered(self, provider, source, clock):
        first = provider.current()
        clock.advance(seconds=REFRESH_THRESHOLD.total_seconds())

        assert provider.current() is first
        assert source.calls == 1

    def test_stale_credentials_refreshed_once(self, provider, source, clock):
        first = provider.current()
        clock.advance(minutes=56)

        second = provider.current()
        third = provider.current()

        assert second is not first
        assert second is third
        assert second.issued_at == clock.now
        assert source.calls == 2

    def test_refresh_uses_issuing_source(self, chain, profile, environment, source, clock):
        profile.available = False
        chain.current()
        clock.advance(hours=1)

        creds = chain.current()

        assert creds.source == "environment"
        assert environment.calls == 2
        # Refresh skips the rest of the chain
        assert profile.calls == 1
        assert source.calls == 0

    def test_failed_refresh_raises_and_retries_later(self, provider, source, clock):
        first = provider.current()
        clock.advance(minutes=60)
        source.error = BrokerError("Error getting role credentials")

        with pytest.raises(BrokerError):
            provider.current()

        source.error = None
        refreshed = provider.current()
        assert refreshed is not first
        assert source.calls == 3

    def test_refresh_when_source_no_longer_applies(self, provider, source, clock):
        provider.current()
        clock.advance(minutes=60)
        source.available = False

        with pytest.raises(NoCredentialSourceError):
            provider.current()


class TestAssumeRole:
    def test_switches_role(self, provider, source):
        provider.current()

        creds = provider.assume_role("DataEngineer")

        assert provider.role == Role("DataEngineer", "123456789012")
        assert creds.role == Role("DataEngineer", "123456789012")
        assert provider.current() is creds

    def test_accepts_role_instance(self, provider):
        role = Role("Auditor", "210987654321")

        creds = provider.assume_role(role)

        assert provider.role == role
        assert creds.role == role

    def test_only_role_aware_sources_consulted(self, chain, profile, environment, source):
        chain.assume_role("DataEngineer")

        assert profile.calls == 0
        assert environment.calls == 0
        assert source.calls == 1

    def test_failure_restores_previous_state(self, provider, source):
        before = provider.current()
        role_before = provider.role
        source.error = BrokerError("Error getting role credentials: AccessDenied")

        with pytest.raises(AssumeRoleError) as exc_info:
            provider.assume_role("Administrator")

        assert exc_info.value.role == "Administrator"
        assert isinstance(exc_info.value.__cause__, BrokerError)
        assert provider.role == role_before
        source.error = None
        assert provider.current() is before

    def test_failure_without_role_aware_source(self, config, clock, profile):
        provider = CredentialProvider(config.aws, sources=[profile], clock=clock)
        before = provider.current()

        with pytest.raises(AssumeRoleError):
            provider.assume_role("DataEngineer")

        assert provider.role == Role("Analyst", "123456789012")
        assert provider.current() is before

    def test_unexpected_error_restores_state(self, provider, source):
        before = provider.current()

        def explode(role):
            raise RuntimeError("unexpected")

        source.load = explode

        with pytest.raises(RuntimeError):
            provider.assume_role("DataEngineer")

        assert provider.role == Role("Analyst", "123456789012")
        assert provider.current() is before


class TestDefaultSources:
    def test_precedence_order(self, config):
        config.aws.profile = "analytics"

        sources = default_sources(config.aws)

        assert [type(s) for s in sources] == [ProfileSource, EnvironmentSource, SSOSource]
        assert sources[0].profile == "analytics"
        assert sources[2].account_id == "123456789012"
        assert sources[2].broker.timeout == config.aws.broker_timeout_seconds

    def test_session_uses_current_credentials(self, provider, config):
        session = provider.session()
        frozen = session.get_credentials().get_frozen_credentials()
        creds = provider.current()

        assert frozen.access_key == creds.access_key_id
        assert frozen.token == creds.session_token
        assert session.region_name == config.aws.region
