"""
Tests for the provider routing table (epic_router/integrations/provider_routing.py).

Covers:
  - Domain to profile family resolution
  - Unknown domain default
  - Default profiles and one-level fallbacks
  - Environment tuning
"""

import pytest

from epic_router.integrations.provider_routing import (
    DEVELOPMENT,
    DEVELOPMENT_DOMAINS,
    NARRATIVE,
    NARRATIVE_DOMAINS,
    ProviderRoutingTable,
    default_development_profile,
)
from epic_router.models import ProviderProfile, RateLimit, TaskDomain


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def table():
    return ProviderRoutingTable()


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestResolve:

    def test_domain_sets_cover_every_task_domain(self):
        assert DEVELOPMENT_DOMAINS | NARRATIVE_DOMAINS == frozenset(TaskDomain)
        assert not DEVELOPMENT_DOMAINS & NARRATIVE_DOMAINS

    @pytest.mark.parametrize("domain", sorted(DEVELOPMENT_DOMAINS, key=lambda d: d.value))
    def test_development_domains(self, table, domain):
        assert table.resolve(domain).domain == DEVELOPMENT

    @pytest.mark.parametrize("domain", sorted(NARRATIVE_DOMAINS, key=lambda d: d.value))
    def test_narrative_domains(self, table, domain):
        assert table.resolve(domain).domain == NARRATIVE

    def test_code_review(self, table):
        profile = table.resolve(TaskDomain.CODE_REVIEW)
        assert profile.provider == "github-copilot-claude4"
        assert profile.model == "claude-3-5-sonnet-20241022"

    def test_string_domain(self, table):
        assert table.resolve("narrative-generation").provider == "openai"
        assert table.resolve(" Code-Review ").domain == DEVELOPMENT

    def test_unknown_domain_defaults_to_development(self, table):
        assert table.resolve("unheard-of").domain == DEVELOPMENT


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfiles:

    def test_development_profile(self, table):
        profile = table.profiles[DEVELOPMENT]
        assert profile.temperature == 0.1
        assert profile.max_tokens == 8192
        assert profile.rate_limit.requests_per_minute == 60
        assert profile.fallback.provider == "anthropic"
        assert profile.fallback.fallback is None

    def test_narrative_profile(self, table):
        profile = table.profiles[NARRATIVE]
        assert profile.provider == "openai"
        assert profile.model == "gpt-4o"
        assert profile.temperature == 0.7
        assert profile.fallback.model == "claude-3-haiku-20240307"

    def test_custom_profiles(self):
        custom = ProviderProfile(
            domain=DEVELOPMENT,
            provider="local",
            model="tiny",
            rate_limit=RateLimit(requests_per_minute=5, tokens_per_minute=1000),
        )
        table = ProviderRoutingTable(development=custom)
        assert table.resolve(TaskDomain.CODE_GENERATION).provider == "local"
        assert table.resolve(TaskDomain.USER_CONTENT).provider == "openai"

    def test_profiles_is_a_copy(self, table):
        table.profiles.clear()
        assert len(table.profiles) == 2


# ---------------------------------------------------------------------------
# Environment tuning
# ---------------------------------------------------------------------------


class TestForEnvironment:

    def test_development_environment(self, table):
        tuned = table.for_environment("development")
        dev = tuned.profiles[DEVELOPMENT]
        assert dev.temperature == 0.2
        assert dev.rate_limit.requests_per_minute == 30
        assert dev.rate_limit.tokens_per_minute == 50000
        assert tuned.profiles[NARRATIVE].temperature == 0.8
        assert tuned.environment == "development"

    def test_production_environment(self, table):
        tuned = table.for_environment("Production")
        dev = tuned.profiles[DEVELOPMENT]
        assert dev.temperature == 0.05
        assert dev.rate_limit.requests_per_minute == 100
        assert tuned.profiles[NARRATIVE].rate_limit.tokens_per_minute == 100000
        assert tuned.environment == "production"

    def test_staging_keeps_base_profiles(self, table):
        tuned = table.for_environment("staging")
        assert tuned.profiles == table.profiles

    def test_fallbacks_untouched(self, table):
        tuned = table.for_environment("production")
        assert tuned.profiles[DEVELOPMENT].fallback == default_development_profile().fallback

    def test_original_table_unchanged(self, table):
        table.for_environment("production")
        assert table.profiles[DEVELOPMENT].temperature == 0.1
        assert table.environment is None
