from cliquebeam.engine.beam import (
    Beam,
    BeamSearchEngine,
    BestResult,
    ScoredCandidate,
    SearchConfig,
    SearchOutcome,
)
from cliquebeam.engine.candidate import CliqueCandidate
from cliquebeam.engine.errors import (
    CliqueMiningError,
    ConfigurationError,
    InvalidEdgeError,
    InvalidExpansionError,
    UnknownNodeError,
)
from cliquebeam.engine.graph import TypedHypergraph
from cliquebeam.engine.scoring import Score, ScoringFunction, score
from cliquebeam.engine.typespec import TypeSpec

__all__ = [
    "TypeSpec",
    "TypedHypergraph",
    "CliqueCandidate",
    "Score",
    "ScoringFunction",
    "score",
    "Beam",
    "BeamSearchEngine",
    "BestResult",
    "ScoredCandidate",
    "SearchConfig",
    "SearchOutcome",
    "CliqueMiningError",
    "ConfigurationError",
    "InvalidEdgeError",
    "InvalidExpansionError",
    "UnknownNodeError",
]
