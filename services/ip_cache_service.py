"""
services/ip_cache_service.py

Responsibility: Owns the single process-wide cache of the public address
record and decides, on every request, whether to reuse it or perform a new
lookup. The refresh cadence adapts to local-address changes.
Does NOT: perform HTTP itself, enumerate interfaces, or format display text.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from network.models import FetchEndpoint, RemoteAddressProvider, RemoteAddressRecord

logger = logging.getLogger(__name__)

# After this long without a local-address change the adaptive strategies
# widen the refresh interval to CacheConfig.max_interval.
_STABLE_AFTER_SECONDS = 3600.0


class CacheStrategy(str, Enum):
    """Policy used to compute the refresh interval of the cached record."""

    FIXED = "fixed"
    ADAPTIVE = "adaptive"
    NETWORK_EVENT = "network-event"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class CacheConfig:
    """
    Per-call cache parameters supplied by the caller.

    All intervals are in seconds.
    """

    strategy: CacheStrategy = CacheStrategy.HYBRID
    standard_interval: float = 300.0
    fast_interval: float = 30.0
    max_interval: float = 900.0

    # Number of cache checks that use fast_interval after a network change
    adaptive_cycles: int = 6

    endpoint: FetchEndpoint = field(default_factory=FetchEndpoint)


@dataclass
class CacheState:
    """
    Mutable cache state. Only AdaptiveIpCache touches it, and only while
    holding its lock.

    Timestamps are values of the cache's clock; None means "never".
    """

    record: RemoteAddressRecord = field(default_factory=RemoteAddressRecord.empty)
    last_fetch: float | None = None
    last_change: float | None = None
    fast_mode_cycles: int = 0

    # Best local address seen by the previous probe; empty = none seen yet
    last_local_address: str = ""


class AdaptiveIpCache:
    """
    Concurrency-safe cache of the public address lookup.

    One instance is created during application startup and shared by the
    scheduler tick and every API request. All state reads and writes happen
    under a single asyncio.Lock; the lookup itself runs outside the lock.
    Callers that find the cache stale while a lookup is already in flight
    await that lookup instead of starting a second one. A forced refresh or
    a detected network change always starts its own lookup, and a lookup
    never overwrites the result of one that started after it.

    Collaborators:
        - RemoteAddressProvider: performs the actual lookup (never raises)
        - local_probe: returns the current best local address, used only to
          detect network changes
    """

    def __init__(
        self,
        provider: RemoteAddressProvider,
        local_probe: Callable[[], str | None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialises an empty (cold) cache.

        Args:
            provider: The public address lookup implementation.
            local_probe: Zero-argument callable returning the best local
                         address with no adapter preference, or None.
            clock: Monotonic time source in seconds; injectable for tests.
        """
        self._provider = provider
        self._probe = local_probe
        self._clock = clock
        self._state = CacheState()
        self._lock = asyncio.Lock()
        self._inflight: asyncio.Future[RemoteAddressRecord] | None = None

        # Lookups are numbered in start order; only a newer one may store
        self._started_lookups = 0
        self._stored_lookup = 0

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def resolve(self, config: CacheConfig, force_refresh: bool = False) -> RemoteAddressRecord:
        """
        Returns the public address record, fetching a new one when due.

        Args:
            config: Strategy, intervals and endpoint for this call.
            force_refresh: Skip the freshness check and always look up.

        Returns:
            The cached record when it is still fresh, otherwise the result of
            a new lookup. A failed lookup returns an invalid record but leaves
            the previously cached record in place.
        """
        async with self._lock:
            now = self._clock()
            network_changed = self._observe_local_address(config, now)

            must_fetch = force_refresh or network_changed
            if not must_fetch:
                cached = self._fresh_cached_record(config, now)
                if cached is not None:
                    return cached

            lookup = self._inflight
            if must_fetch or lookup is None or lookup.done():
                # A lookup already in flight started before this trigger
                self._started_lookups += 1
                lookup = asyncio.ensure_future(self._fetch_and_store(config, now, self._started_lookups))
                self._inflight = lookup
            else:
                logger.debug("Joining public IP lookup already in flight.")

        return await asyncio.shield(lookup)

    async def resolve_address(self, config: CacheConfig, force_refresh: bool = False) -> str:
        """Returns only the public address string (empty on failure)."""
        record = await self.resolve(config, force_refresh)
        return record.address

    def snapshot(self) -> CacheState:
        """
        Returns a copy of the current cache state for diagnostics.

        Reads without the lock; the copy may be one update behind.
        """
        return dataclasses.replace(self._state)

    def seconds_since(self, timestamp: float | None) -> float | None:
        """Converts a CacheState timestamp into an age in seconds."""
        if timestamp is None:
            return None
        return self._clock() - timestamp

    # ---------------------------------------------------------------------------
    # Internal helpers: callers must hold self._lock
    # ---------------------------------------------------------------------------

    def _observe_local_address(self, config: CacheConfig, now: float) -> bool:
        """
        Probes the local address and records a network change if it moved.

        The first non-empty observation after an empty one is not a change.

        Returns:
            True if this call detected a network change.
        """
        state = self._state
        # NOTE: the probe is a synchronous psutil call made on the event loop
        # under the lock; interface enumeration is local and short.
        current = self._probe() or ""
        changed = bool(state.last_local_address) and current != state.last_local_address
        if changed:
            logger.info(
                "Local address changed (%s -> %s); fast refresh for %d cycle(s).",
                state.last_local_address,
                current or "none",
                config.adaptive_cycles,
            )
            state.last_change = now
            state.fast_mode_cycles = max(config.adaptive_cycles, 0)
        state.last_local_address = current
        return changed

    def _fresh_cached_record(self, config: CacheConfig, now: float) -> RemoteAddressRecord | None:
        """Returns the cached record if it is valid and younger than the interval."""
        state = self._state
        if not state.record.is_valid or state.last_fetch is None:
            return None

        interval = self._refresh_interval(config, now)
        if now - state.last_fetch < interval:
            return state.record
        return None

    def _refresh_interval(self, config: CacheConfig, now: float) -> float:
        """
        Computes the applicable refresh interval for the configured strategy.

        Consumes one fast-mode cycle when the adaptive strategies are in
        fast mode.
        """
        state = self._state
        strategy = config.strategy

        if strategy is CacheStrategy.FIXED:
            return config.standard_interval

        if strategy is CacheStrategy.NETWORK_EVENT:
            return config.max_interval

        # ADAPTIVE and HYBRID
        if state.fast_mode_cycles > 0:
            state.fast_mode_cycles -= 1
            return config.fast_interval

        stable_for = now - state.last_change if state.last_change is not None else None
        if stable_for is None or stable_for > _STABLE_AFTER_SECONDS:
            return config.max_interval
        return config.standard_interval

    # ---------------------------------------------------------------------------
    # Lookup: runs without the lock held
    # ---------------------------------------------------------------------------

    async def _fetch_and_store(self, config: CacheConfig, started_at: float, sequence: int) -> RemoteAddressRecord:
        """
        Performs one lookup and stores the result if it is valid.

        A valid result is discarded when a lookup that started later has
        already stored its own.

        Args:
            config: Supplies the endpoint.
            started_at: Clock value of the resolve() call that triggered the
                        lookup; recorded as the last-fetch time.
            sequence: Start order of this lookup.

        Returns:
            The lookup result, valid or not.
        """
        record = await self._provider.fetch(config.endpoint)

        async with self._lock:
            previous = self._state.record
            superseded = sequence < self._stored_lookup
            if record.is_valid and not superseded:
                self._state.record = record
                self._state.last_fetch = started_at
                self._stored_lookup = sequence

        if not record.is_valid:
            logger.warning(
                "Public IP lookup returned nothing; keeping cached value %s.",
                previous.address or "(none)",
            )
        elif superseded:
            logger.debug("Discarding public IP %s from a superseded lookup.", record.address)
        elif previous.address != record.address:
            logger.info(
                "Public IP is now %s (was %s).",
                record.address,
                previous.address or "unknown",
            )
        return record
