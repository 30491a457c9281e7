"""
Provider routing table for the epic router.

Two profile families cover every task domain:

- development: software tasks (coding, review, CI workflows, documentation,
  architecture and quality analysis), precise low-temperature output
- narrative: user-facing creative content, higher temperature

Each family has a one-level fallback profile on a second provider. The table
is static; ``for_environment`` returns a new table with per-environment
temperature and rate-limit tuning applied.
"""

from typing import Optional, Union

from epic_router.models.provider import ProviderProfile, RateLimit, TaskDomain
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)


DEVELOPMENT = "development"
NARRATIVE = "narrative"

DEVELOPMENT_DOMAINS: frozenset[TaskDomain] = frozenset({
    TaskDomain.SOFTWARE_DEVELOPMENT,
    TaskDomain.CODE_GENERATION,
    TaskDomain.CODE_REVIEW,
    TaskDomain.GITHUB_ACTIONS,
    TaskDomain.TECHNICAL_DOCUMENTATION,
    TaskDomain.ARCHITECTURE_DECISIONS,
    TaskDomain.QUALITY_INTELLIGENCE,
    TaskDomain.PREDICTIVE_BUG_DETECTION,
    TaskDomain.SEMANTIC_CODE_REVIEW,
    TaskDomain.QUALITY_METRICS_ANALYSIS,
    TaskDomain.REGRESSION_PREDICTION,
})

NARRATIVE_DOMAINS: frozenset[TaskDomain] = frozenset({
    TaskDomain.NARRATIVE_GENERATION,
    TaskDomain.STORY_CONTINUATION,
    TaskDomain.CHARACTER_DEVELOPMENT,
    TaskDomain.WORLD_BUILDING,
    TaskDomain.USER_CONTENT,
})

DEVELOPMENT_SYSTEM_PROMPT = (
    "You are an expert software engineer. Produce precise, production-ready "
    "changes with complete error handling, tests, and clear architectural notes."
)

NARRATIVE_SYSTEM_PROMPT = (
    "You are a narrative engine for interactive stories. Keep each beat to one "
    "or two sentences and end with a single binary choice."
)

# family -> (temperature, requests/min, tokens/min)
ENVIRONMENT_OVERRIDES: dict[str, dict[str, tuple[float, int, int]]] = {
    "development": {
        DEVELOPMENT: (0.2, 30, 50000),
        NARRATIVE: (0.8, 20, 30000),
    },
    "production": {
        DEVELOPMENT: (0.05, 100, 150000),
        NARRATIVE: (0.7, 80, 100000),
    },
}


def default_development_profile() -> ProviderProfile:
    return ProviderProfile(
        domain=DEVELOPMENT,
        provider="github-copilot-claude4",
        model="claude-3-5-sonnet-20241022",
        temperature=0.1,
        max_tokens=8192,
        system_prompt=DEVELOPMENT_SYSTEM_PROMPT,
        rate_limit=RateLimit(requests_per_minute=60, tokens_per_minute=100000),
        fallback=ProviderProfile(
            domain=DEVELOPMENT,
            provider="anthropic",
            model="claude-3-5-sonnet-20241022",
            temperature=0.1,
            max_tokens=8192,
            rate_limit=RateLimit(requests_per_minute=50, tokens_per_minute=80000),
        ),
    )


def default_narrative_profile() -> ProviderProfile:
    return ProviderProfile(
        domain=NARRATIVE,
        provider="openai",
        model="gpt-4o",
        temperature=0.7,
        max_tokens=2048,
        system_prompt=NARRATIVE_SYSTEM_PROMPT,
        rate_limit=RateLimit(requests_per_minute=50, tokens_per_minute=60000),
        fallback=ProviderProfile(
            domain=NARRATIVE,
            provider="anthropic",
            model="claude-3-haiku-20240307",
            temperature=0.7,
            max_tokens=1024,
            rate_limit=RateLimit(requests_per_minute=40, tokens_per_minute=40000),
        ),
    )


class ProviderRoutingTable:
    """
    Static lookup from task domain to provider profile.

    Usage:
        table = ProviderRoutingTable()
        profile = table.resolve(TaskDomain.CODE_REVIEW)
        profile.provider        # "github-copilot-claude4"
        table.resolve("narrative-generation").provider   # "openai"
        table.resolve("unheard-of").domain               # "development"
    """

    def __init__(
        self,
        development: Optional[ProviderProfile] = None,
        narrative: Optional[ProviderProfile] = None,
        environment: Optional[str] = None,
    ) -> None:
        self._profiles: dict[str, ProviderProfile] = {
            DEVELOPMENT: development or default_development_profile(),
            NARRATIVE: narrative or default_narrative_profile(),
        }
        self._environment = environment

    @property
    def environment(self) -> Optional[str]:
        return self._environment

    @property
    def profiles(self) -> dict[str, ProviderProfile]:
        return dict(self._profiles)

    def resolve(self, domain: Union[TaskDomain, str]) -> ProviderProfile:
        """
        Profile for a task domain.

        Args:
            domain: TaskDomain or its string value.

        Returns:
            The family profile; unknown domains get the development profile.
        """
        task_domain = self._coerce(domain)
        if task_domain in NARRATIVE_DOMAINS:
            return self._profiles[NARRATIVE]
        if task_domain not in DEVELOPMENT_DOMAINS:
            logger.warning(
                "unknown_provider_domain",
                domain=str(getattr(domain, "value", domain)),
                default_family=DEVELOPMENT,
            )
        return self._profiles[DEVELOPMENT]

    def for_environment(self, environment: str) -> "ProviderRoutingTable":
        """
        New table with the environment's temperature and rate-limit tuning.

        Environments without overrides (staging) keep the base profiles.
        Fallback profiles are left untouched.
        """
        overrides = ENVIRONMENT_OVERRIDES.get(environment.lower(), {})
        tuned: dict[str, ProviderProfile] = {}
        for family, profile in self._profiles.items():
            if family in overrides:
                temperature, rpm, tpm = overrides[family]
                profile = profile.with_overrides(
                    temperature=temperature,
                    rate_limit=RateLimit(requests_per_minute=rpm, tokens_per_minute=tpm),
                )
            tuned[family] = profile

        logger.debug(
            "provider_table_tuned",
            environment=environment,
            overridden=sorted(overrides.keys()),
        )
        return ProviderRoutingTable(
            development=tuned[DEVELOPMENT],
            narrative=tuned[NARRATIVE],
            environment=environment.lower(),
        )

    @staticmethod
    def _coerce(domain: Union[TaskDomain, str]) -> Optional[TaskDomain]:
        if isinstance(domain, TaskDomain):
            return domain
        try:
            return TaskDomain(str(domain).strip().lower())
        except ValueError:
            return None
