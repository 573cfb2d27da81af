"""Synthetic snapshot source used offline or while the live uplink is degraded."""

from __future__ import annotations

import math
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from loguru import logger

from engines.inputs.parsing import one_day_levels
from schemas.core_schemas import MarketSnapshot, StrikeLevel


class SyntheticSnapshotSource:
    """
    Random-walk generator of market snapshots with a per-strike table.

    Price, exposures and premiums drift by small gaussian steps from the
    previous snapshot. With ``start`` set, timestamps advance by ``step`` on
    every fetch; otherwise wall-clock time is used (kept strictly increasing).
    """

    def __init__(
        self,
        start_price: float = 5240.0,
        seed: Optional[int] = None,
        start: Optional[datetime] = None,
        step: timedelta = timedelta(minutes=3),
        strike_increment: float = 5.0,
        strike_count: int = 41,
    ):
        self.rng = random.Random(seed)
        self.price = start_price
        self.exposure = (self.rng.random() - 0.45) * 15_000_000
        self.exposure_oi = (self.rng.random() - 0.2) * 60_000_000
        self.exposure_1dte = (self.rng.random() - 0.4) * 12_000_000
        self.exposure_1dte_oi = (self.rng.random() - 0.1) * 80_000_000
        self.call_premium = 50_000_000.0
        self.put_premium = 50_000_000.0
        self.vix = 15.0
        self._clock = start
        self._step = step
        self._last_timestamp: Optional[datetime] = None
        self.strike_increment = strike_increment
        self.strike_count = strike_count
        logger.info(f"SyntheticSnapshotSource initialized (start_price={start_price:.2f}, seed={seed})")

    async def fetch(self, ticker: str) -> Optional[MarketSnapshot]:
        return self.next_snapshot(ticker)

    def next_snapshot(self, ticker: str = "SPX") -> MarketSnapshot:
        rng = self.rng
        previous_price, previous_exposure = self.price, self.exposure
        self.price = max(1.0, self.price + rng.gauss(0, 1.5))
        self.exposure += rng.gauss(0, 400_000)
        self.exposure_oi += rng.gauss(0, 150_000)
        self.exposure_1dte += rng.gauss(0, 300_000)
        self.exposure_1dte_oi += rng.gauss(0, 250_000)
        self.call_premium = max(0.0, self.call_premium + rng.gauss(0, 500_000))
        self.put_premium = max(0.0, self.put_premium + rng.gauss(0, 500_000))
        self.vix = min(80.0, max(9.0, self.vix + rng.gauss(0, 0.1)))

        # the wall leans one strike toward the side the 1DTE book is on
        wall = round(self.price / 25) * 25 + (25 if self.exposure_1dte > 0 else -25)
        wall_1dte, block_1dte, drive_1dte = one_day_levels(
            self.price,
            self.exposure,
            self.exposure_1dte_oi,
            previous_price,
            previous_exposure,
            row={"wall_1dte": wall, "block_1dte": round(self.exposure_1dte_oi * 0.15)},
        )

        return MarketSnapshot(
            timestamp=self._next_timestamp(),
            ticker=ticker.upper(),
            price=round(self.price, 2),
            exposure=round(self.exposure),
            exposure_oi=round(self.exposure_oi),
            exposure_1dte=round(self.exposure_1dte),
            exposure_1dte_oi=round(self.exposure_1dte_oi),
            wall_1dte=wall_1dte,
            block_1dte=block_1dte,
            drive_1dte=drive_1dte,
            volume=float(rng.randint(50_000, 400_000)),
            call_premium=self.call_premium,
            put_premium=self.put_premium,
            vix=round(self.vix, 2),
            implied_move=round(self.price * self.vix / 1600 * 0.5, 2),
            strikes=self._strike_table(),
        )

    def _strike_table(self) -> List[StrikeLevel]:
        rng = self.rng
        atm = round(self.price / self.strike_increment) * self.strike_increment
        half = self.strike_count // 2
        levels = []
        for i in range(-half, half + 1):
            strike = atm + i * self.strike_increment
            distance = abs(strike - self.price) / self.price
            # activity decays away from spot
            weight = math.exp(-((distance / 0.01) ** 2))
            call_volume = float(int(rng.uniform(0.2, 1.0) * 20_000 * weight))
            put_volume = float(int(rng.uniform(0.2, 1.0) * 20_000 * weight))
            sign = 1.0 if strike >= self.price else -1.0
            net_gex = sign * rng.uniform(0.1, 1.0) * 2_000_000 * weight + rng.gauss(0, 50_000)
            levels.append(
                StrikeLevel(
                    price=strike,
                    call_volume=call_volume,
                    put_volume=put_volume,
                    net_gex=round(net_gex),
                    open_interest=float(int(rng.uniform(0.3, 1.0) * 40_000 * weight)),
                    dark_pool_volume=float(int(rng.uniform(0.0, 1.0) * 5_000 * weight)),
                )
            )
        return levels

    def _next_timestamp(self) -> datetime:
        if self._clock is not None:
            self._clock = self._clock + self._step
            ts = self._clock
        else:
            ts = datetime.now(timezone.utc)
            if self._last_timestamp is not None and ts <= self._last_timestamp:
                ts = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = ts
        return ts
