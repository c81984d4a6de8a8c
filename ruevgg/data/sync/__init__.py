"""Module de récupération des données Riot et d'orchestration de l'analyse.

Architecture:
- rate_limiter.py : Rate limiter à double fenêtre (court/long terme)
- provider.py : Protocole MatchDataProvider
- api_client.py : Client aiohttp de l'API Riot (implémente le protocole)
- history.py : Pagination et cache des historiques de matchs
- engine.py : Orchestrateur TeamAnalysisEngine
- models.py : Options, statuts et résultat d'analyse
- errors.py : Taxonomie des erreurs du fournisseur

Usage:
    from ruevgg.data.sync import RiotAPIClient, TeamAnalysisEngine

    async with RiotAPIClient(region="EUW1") as client:
        engine = TeamAnalysisEngine(client)
        result = await engine.analyze_riot_ids(["Faker#KR1", "Keria#KR1"])
        print(result.to_message())
"""


# Import différé du moteur (il dépend de ruevgg.analysis, qui dépend
# lui-même des modules de ce package)
def __getattr__(name: str):
    if name == "TeamAnalysisEngine":
        from ruevgg.data.sync.engine import TeamAnalysisEngine

        return TeamAnalysisEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


from ruevgg.data.sync.api_client import (  # noqa: E402
    ApiKey,
    RiotAPIClient,
    get_api_key_from_env,
    resolve_routing,
)
from ruevgg.data.sync.errors import (  # noqa: E402
    AnalysisCancelledError,
    DecodingError,
    NotFoundError,
    ProviderError,
    ProviderErrorKind,
    TransientError,
    UnauthorizedError,
)
from ruevgg.data.sync.history import HistoryCache, HistoryFetcher  # noqa: E402
from ruevgg.data.sync.models import (  # noqa: E402
    AnalysisMode,
    AnalysisOptions,
    AnalysisResult,
    AnalysisStatus,
    SearchOutcome,
)
from ruevgg.data.sync.provider import MatchDataProvider  # noqa: E402
from ruevgg.data.sync.rate_limiter import DualWindowRateLimiter  # noqa: E402

__all__ = [
    # Engine
    "TeamAnalysisEngine",
    # Models
    "AnalysisOptions",
    "AnalysisResult",
    "AnalysisStatus",
    "AnalysisMode",
    "SearchOutcome",
    # Provider
    "MatchDataProvider",
    "RiotAPIClient",
    "ApiKey",
    "get_api_key_from_env",
    "resolve_routing",
    # Pagination
    "DualWindowRateLimiter",
    "HistoryCache",
    "HistoryFetcher",
    # Errors
    "ProviderErrorKind",
    "ProviderError",
    "NotFoundError",
    "UnauthorizedError",
    "TransientError",
    "DecodingError",
    "AnalysisCancelledError",
]
