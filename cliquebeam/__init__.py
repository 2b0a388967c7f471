"""cliquebeam — beam-search mining of dense typed quasi-cliques."""

__version__ = "0.1.0"

from cliquebeam.client import CliqueMiner
from cliquebeam.models import (
    CliqueRecord,
    EdgeRecord,
    GraphStats,
    MiningConfig,
    MiningRequest,
    MiningResult,
)

__all__ = [
    "CliqueMiner",
    "CliqueRecord",
    "EdgeRecord",
    "GraphStats",
    "MiningConfig",
    "MiningRequest",
    "MiningResult",
    "__version__",
]
