"""Analysis providers, the provider fallback manager and outcome sources."""

from .fallback import ProviderFallbackManager, ProviderResult, ProviderStatus
from .outcomes import (
    AnalysisOutcomeSource,
    PatternDetection,
    ProviderOutcomeSource,
    RandomOutcomeSource,
)
from .providers import (
    AnalysisProvider,
    ChatCompletionProvider,
    KeywordPatternProvider,
    PatternMatch,
    PatternType,
    build_provider,
    build_providers,
)

__all__ = [
    "AnalysisOutcomeSource",
    "AnalysisProvider",
    "ChatCompletionProvider",
    "KeywordPatternProvider",
    "PatternDetection",
    "PatternMatch",
    "PatternType",
    "ProviderFallbackManager",
    "ProviderOutcomeSource",
    "ProviderResult",
    "ProviderStatus",
    "RandomOutcomeSource",
    "build_provider",
    "build_providers",
]
