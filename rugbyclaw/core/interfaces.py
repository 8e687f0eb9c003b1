"""Abstract interfaces for rugbyclaw.

Defines the contract secondary (official) kickoff sources must implement.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from rugbyclaw.core.types import Game, OfficialFixture


class OfficialFixtureSource(ABC):
    """A league website or federation feed used to corroborate kickoff times.

    Sources are best-effort: they raise SourceError when they have nothing
    usable, and the reconciliation engine treats that as "no overrides".
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Source identifier (e.g., 'lnr', 'incrowd', 'urc')."""
        ...

    @property
    @abstractmethod
    def league_ids(self) -> frozenset[str]:
        """Upstream league ids this source publishes fixtures for."""
        ...

    def supports_league(self, league_id: str) -> bool:
        return league_id in self.league_ids

    @abstractmethod
    def fetch_official_fixtures(
        self,
        league_id: str,
        season_hint_games: Sequence[Game],
    ) -> list[OfficialFixture]:
        """Fetch the official fixture list for a league.

        Args:
            league_id: Upstream league id
            season_hint_games: Upstream games being reconciled; their kickoff
                years decide which season windows to request

        Returns:
            Fixtures published by the source (possibly empty)

        Raises:
            SourceError: if no request to the source produced data
        """
        ...

    def close(self) -> None:
        """Release any resources held by the source."""
