"""
Concurrent loading of the chains an event can be attached to.

All chains are fetched at once and the batch only succeeds when every
fetch succeeded. A partial list of admin chains would be misleading, so
any failure fails the whole batch with an AggregateFetchError listing
each failed identifier.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from eventform.api_client import ApiError
from eventform.models import Chain, SessionUser

logger = logging.getLogger("eventform.chain_loader")

FetchChain = Callable[[str], Awaitable[Chain]]


@dataclass(frozen=True)
class FetchFailure:
    """One failed fetch inside a batch."""

    identifier: str
    status_code: Optional[int]
    message: str


class AggregateFetchError(ApiError):
    """Raised when one or more fetches of a batch failed."""

    def __init__(self, failures: Sequence[FetchFailure]):
        self.failures = list(failures)
        status_code = next(
            (f.status_code for f in self.failures if f.status_code is not None), None
        )
        super().__init__(self._summarize(self.failures), status_code=status_code)

    @staticmethod
    def _summarize(failures: Sequence[FetchFailure]) -> str:
        parts = []
        for f in failures:
            status = f" (status {f.status_code})" if f.status_code is not None else ""
            parts.append(f"{f.identifier}{status}: {f.message}")
        return f"Unable to get {len(failures)} loop(s): " + "; ".join(parts)


class ChainLoader:
    """
    Fan-out/fan-in loader over a chain fetch function.

    Usage:
        >>> loader = ChainLoader(api_client.get_chain)
        >>> chains = await loader.load_admin_chains(session_user)
    """

    def __init__(self, fetch: FetchChain):
        self._fetch = fetch

    async def load_all(self, identifiers: Sequence[str]) -> list[Chain]:
        """
        Fetch every identifier concurrently.

        Args:
            identifiers: Chain UIDs

        Returns:
            Chains in the same order as identifiers

        Raises:
            AggregateFetchError: If any fetch failed, after all settled
        """
        identifiers = list(identifiers)
        if not identifiers:
            return []

        logger.debug(f"Fetching {len(identifiers)} chains")
        results = await asyncio.gather(
            *(self._fetch(uid) for uid in identifiers), return_exceptions=True
        )

        failures = []
        for uid, result in zip(identifiers, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures.append(
                    FetchFailure(
                        identifier=uid,
                        status_code=getattr(result, "status_code", None),
                        message=str(result) or type(result).__name__,
                    )
                )

        if failures:
            logger.warning(
                f"Chain batch failed: {len(failures)}/{len(identifiers)} fetches failed"
            )
            raise AggregateFetchError(failures)

        return list(results)

    async def load_admin_chains(self, user: SessionUser) -> list[Chain]:
        """Load the chains the given user administers."""
        return await self.load_all(user.admin_chain_uids())
