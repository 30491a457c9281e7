"""
Epic interpretation for the epic router.

Classifies work items into epic types with complexity and success estimates.
"""

from epic_router.interpretation.interpreter import (
    BodyStructure,
    EpicClassifier,
    WeightedVocabularyInterpreter,
    parse_body_structure,
)
from epic_router.interpretation.vocabulary import (
    EPIC_VOCABULARY,
    HIGH_COMPLEXITY_KEYWORDS,
    ScoringConfig,
)

__all__ = [
    "BodyStructure",
    "EPIC_VOCABULARY",
    "EpicClassifier",
    "HIGH_COMPLEXITY_KEYWORDS",
    "ScoringConfig",
    "WeightedVocabularyInterpreter",
    "parse_body_structure",
]
