"""Client API Riot asynchrone.

Ce module implémente `MatchDataProvider` au-dessus d'aiohttp avec :
- Clé API injectée (ou lue depuis RIOT_API_KEY / .env)
- Routage plateforme → région (EUW1 → europe, NA1 → americas, ...)
- Traduction des statuts HTTP vers la taxonomie ProviderError
- Validation Pydantic des réponses (MatchRecord, PlayerIdentity)

Le moteur d'analyse appelle `DualWindowRateLimiter.acquire()` avant chaque
opération du fournisseur. Une opération qui émet plusieurs requêtes
(`resolve_player` : account-v1 puis summoner-v4) prend elle-même un jeton
sur le limiter partagé pour chaque requête supplémentaire.

Usage:
    async with RiotAPIClient(region="EUW1") as client:
        player = await client.resolve_player("Faker", "KR1")
        ids = await client.fetch_match_id_page(player.puuid, 0, 20)
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from ruevgg.data.domain.models.match import MatchRecord
from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.sync.errors import (
    DecodingError,
    NotFoundError,
    ProviderError,
    TransientError,
    UnauthorizedError,
)
from ruevgg.data.sync.rate_limiter import DualWindowRateLimiter

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration et helpers
# =============================================================================

API_KEY_ENV = "RIOT_API_KEY"
DEFAULT_REGION = "europe"

PLATFORM_TO_REGION: dict[str, str] = {
    "EUW1": "europe",
    "EUN1": "europe",
    "EUNE1": "europe",
    "TR1": "europe",
    "RU": "europe",
    "NA1": "americas",
    "BR1": "americas",
    "LA1": "americas",
    "LA2": "americas",
    "OC1": "americas",
    "KR": "asia",
    "JP1": "asia",
}

# Plateforme utilisée pour summoner-v4 quand seule la région est fournie
DEFAULT_PLATFORM_FOR_REGION: dict[str, str] = {
    "europe": "EUW1",
    "americas": "NA1",
    "asia": "KR",
}


# Fichiers lus, dans l'ordre, quand RIOT_API_KEY n'est pas dans l'environnement
DOTENV_FILES = (".env.local", ".env")
REPO_ROOT = Path(__file__).resolve().parents[3]


@dataclass(frozen=True)
class ApiKey:
    """Clé de développeur Riot."""

    value: str

    @property
    def headers(self) -> dict[str, str]:
        return {"X-Riot-Token": self.value}

    def __repr__(self) -> str:
        return "ApiKey(****)"


def _read_key_from_dotenv(directory: Path) -> str:
    """Cherche `RIOT_API_KEY=...` dans .env.local puis .env ; "" si absente."""
    for name in DOTENV_FILES:
        dotenv_path = directory / name
        if not dotenv_path.is_file():
            continue
        try:
            lines = dotenv_path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.warning(f"Lecture impossible de {dotenv_path}: {e}")
            continue

        for line in lines:
            key, sep, value = line.strip().partition("=")
            key = key.removeprefix("export ").strip()
            if not sep or key != API_KEY_ENV:
                continue
            value = value.strip().strip('"').strip("'")
            if value:
                logger.debug(f"Clé API lue depuis {dotenv_path}")
                return value
    return ""


def get_api_key_from_env(*, dotenv_dir: Path | None = None) -> ApiKey:
    """Récupère la clé API Riot.

    L'environnement (RIOT_API_KEY) est prioritaire ; à défaut, la clé est
    cherchée dans .env.local puis .env à la racine du dépôt (ou `dotenv_dir`).
    L'environnement du processus n'est jamais modifié.

    Raises:
        ValueError: Si la clé est absente ou vide.
    """
    raw = (os.environ.get(API_KEY_ENV) or "").strip()
    if not raw:
        raw = _read_key_from_dotenv(dotenv_dir or REPO_ROOT)
    if not raw:
        raise ValueError(
            f"Clé API Riot manquante. Définir {API_KEY_ENV} dans l'environnement "
            "ou dans .env.local (clé disponible sur https://developer.riotgames.com)."
        )
    return ApiKey(value=raw)


def resolve_routing(region: str | None) -> tuple[str, str]:
    """Retourne (plateforme, région de routage) pour une valeur libre.

    Accepte une plateforme ("EUW1", "na1") ou une région ("europe").
    Toute valeur inconnue retombe sur europe / EUW1.
    """
    s = (region or "").strip()
    upper = s.upper()
    if upper in PLATFORM_TO_REGION:
        return upper, PLATFORM_TO_REGION[upper]
    lower = s.lower()
    if lower in DEFAULT_PLATFORM_FOR_REGION:
        return DEFAULT_PLATFORM_FOR_REGION[lower], lower
    if s:
        logger.warning(f"Région inconnue '{s}', repli sur {DEFAULT_REGION}")
    return DEFAULT_PLATFORM_FOR_REGION[DEFAULT_REGION], DEFAULT_REGION


def _parse_retry_after(raw: Any) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value >= 0 else None


def error_for_status(status: int, url: str, *, retry_after: float | None = None) -> ProviderError:
    """Traduit un statut HTTP non-200 en ProviderError."""
    if status in (401, 403):
        return UnauthorizedError(
            f"Requête non autorisée ({status}). Clé API probablement invalide/expirée.",
            status=status,
        )
    if status == 404:
        return NotFoundError(f"Ressource introuvable: {url}", status=status)
    if status == 429:
        return TransientError(
            f"Rate limit Riot dépassé (429) sur {url}",
            status=status,
            retry_after=retry_after,
        )
    return TransientError(f"Requête échouée ({status}) sur {url}", status=status)


# =============================================================================
# RiotAPIClient
# =============================================================================


class RiotAPIClient:
    """Client Riot asynchrone implémentant MatchDataProvider.

    Usage:
        async with RiotAPIClient(api_key=key, region="EUW1") as client:
            record = await client.fetch_match_detail("EUW1_123")
    """

    def __init__(
        self,
        *,
        api_key: ApiKey | None = None,
        region: str = DEFAULT_REGION,
        timeout_seconds: float = 10.0,
        session: aiohttp.ClientSession | Any | None = None,
        limiter: DualWindowRateLimiter | None = None,
    ) -> None:
        """
        Args:
            api_key: Clé pré-fournie (sinon lue depuis l'environnement).
            region: Plateforme (EUW1...) ou région de routage (europe...).
            timeout_seconds: Timeout total par requête.
            session: Session HTTP externe (non fermée par le client).
            limiter: Rate limiter partagé avec le moteur, consulté avant
                chaque requête supplémentaire d'une même opération.
        """
        self._api_key = api_key
        self.platform, self.region = resolve_routing(region)
        self._timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None
        self._limiter = limiter

    async def __aenter__(self) -> RiotAPIClient:
        """Initialise la session HTTP."""
        if self._api_key is None:
            self._api_key = get_api_key_from_env()
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds)
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Ferme la session si elle a été créée par le client."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    @property
    def session(self) -> Any:
        if self._session is None or self._api_key is None:
            raise RuntimeError("Client non initialisé. Utiliser 'async with'.")
        return self._session

    @property
    def regional_host(self) -> str:
        return f"https://{self.region}.api.riotgames.com"

    @property
    def platform_host(self) -> str:
        return f"https://{self.platform.lower()}.api.riotgames.com"

    async def _get_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        """GET JSON avec traduction des erreurs HTTP/transport."""
        session = self.session
        headers = self._api_key.headers if self._api_key else {}
        try:
            async with session.get(url, params=params, headers=headers) as resp:
                if resp.status == 200:
                    try:
                        return await resp.json(content_type=None)
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise DecodingError(f"JSON invalide sur {url}: {e}") from e
                retry_after = _parse_retry_after(resp.headers.get("Retry-After"))
                raise error_for_status(resp.status, url, retry_after=retry_after)
        except ProviderError:
            raise
        except asyncio.TimeoutError as e:
            raise TransientError(f"Timeout sur {url}") from e
        except aiohttp.ClientError as e:
            raise TransientError(f"Erreur réseau sur {url}: {e}") from e

    # -------------------------------------------------------------------------
    # Comptes / invocateurs
    # -------------------------------------------------------------------------

    async def get_account(self, game_name: str, tag_line: str) -> dict[str, Any]:
        """account-v1 : Riot ID → puuid."""
        url = (
            f"{self.regional_host}/riot/account/v1/accounts/by-riot-id/"
            f"{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        )
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise DecodingError(f"Réponse compte inattendue pour {game_name}#{tag_line}")
        return payload

    async def get_summoner(self, puuid: str) -> dict[str, Any]:
        """summoner-v4 : puuid → niveau, icône."""
        url = f"{self.platform_host}/lol/summoner/v4/summoners/by-puuid/{quote(puuid, safe='')}"
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise DecodingError(f"Réponse invocateur inattendue pour {puuid}")
        return payload

    async def resolve_player(self, game_name: str, tag_line: str) -> PlayerIdentity:
        """Résout un Riot ID ; le niveau vaut 0 si summoner-v4 ne répond pas."""
        account = await self.get_account(game_name, tag_line)
        puuid = account.get("puuid")
        if not puuid:
            raise DecodingError(f"Compte sans puuid pour {game_name}#{tag_line}")

        data: dict[str, Any] = {
            "puuid": puuid,
            "gameName": account.get("gameName") or game_name,
            "tagLine": account.get("tagLine") or tag_line,
        }
        if self._limiter is not None:
            await self._limiter.acquire()
        try:
            summoner = await self.get_summoner(puuid)
        except UnauthorizedError:
            raise
        except ProviderError as e:
            logger.warning(f"Invocateur indisponible pour {game_name}#{tag_line}: {e}")
        else:
            data["summonerLevel"] = summoner.get("summonerLevel") or 0
            data["profileIconId"] = summoner.get("profileIconId") or 0

        try:
            return PlayerIdentity.model_validate(data)
        except ValidationError as e:
            raise DecodingError(f"Identité invalide pour {game_name}#{tag_line}: {e}") from e

    # -------------------------------------------------------------------------
    # Matchs
    # -------------------------------------------------------------------------

    async def fetch_match_id_page(self, puuid: str, offset: int, count: int) -> list[str]:
        """match-v5 : une page d'ids de match (plus récent d'abord)."""
        url = f"{self.regional_host}/lol/match/v5/matches/by-puuid/{quote(puuid, safe='')}/ids"
        payload = await self._get_json(url, params={"start": offset, "count": count})
        if not isinstance(payload, list):
            raise DecodingError(f"Liste d'ids inattendue pour {puuid}")
        return [str(match_id) for match_id in payload]

    async def fetch_match_detail(self, match_id: str) -> MatchRecord:
        """match-v5 : détail complet d'un match."""
        url = f"{self.regional_host}/lol/match/v5/matches/{quote(match_id, safe='')}"
        payload = await self._get_json(url)
        try:
            return MatchRecord.from_api(payload)
        except ValueError as e:
            raise DecodingError(f"Match {match_id} illisible: {e}") from e


__all__ = [
    "API_KEY_ENV",
    "ApiKey",
    "DEFAULT_REGION",
    "PLATFORM_TO_REGION",
    "RiotAPIClient",
    "error_for_status",
    "get_api_key_from_env",
    "resolve_routing",
]
