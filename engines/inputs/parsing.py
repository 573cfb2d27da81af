"""Defensive parsing of provider payloads into snapshots.

A malformed field never aborts a cycle: every numeric value goes through
``parse_number_or`` and falls back to a documented default.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from schemas.core_schemas import MarketSnapshot, StrikeLevel


def parse_number_or(value: Any, fallback: float = 0.0) -> float:
    """Return ``value`` as a finite float, or ``fallback``. Never raises."""
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else fallback
    try:
        parsed = float(str(value).strip().replace(",", ""))
    except (TypeError, ValueError):
        return fallback
    return parsed if math.isfinite(parsed) else fallback


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 string or epoch seconds to an aware UTC datetime, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_records(payload: Any) -> List[Dict[str, Any]]:
    """Accept a bare list, ``{"data": [...]}`` or ``{"data": {...}}``."""
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        rows = payload["data"]
    elif isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        rows = [payload["data"]]
    else:
        rows = []
    return [row for row in rows if isinstance(row, dict)]


def parse_strike_level(row: Dict[str, Any]) -> Optional[StrikeLevel]:
    """One per-strike row; rows without a usable strike price are dropped."""
    price = parse_number_or(row.get("price", row.get("strike")), fallback=float("nan"))
    if math.isnan(price) or price <= 0:
        return None

    call_volume = parse_number_or(row.get("call_volume"))
    put_volume = parse_number_or(row.get("put_volume"))
    total = row.get("total_volume", row.get("volume"))
    if "net_gex" in row:
        net_gex = parse_number_or(row.get("net_gex"))
    else:
        net_gex = parse_number_or(row.get("call_gamma_oi")) + parse_number_or(row.get("put_gamma_oi"))

    return StrikeLevel(
        price=price,
        call_volume=call_volume,
        put_volume=put_volume,
        total_volume=parse_number_or(total, call_volume + put_volume),
        net_gex=net_gex,
        open_interest=parse_number_or(row.get("open_interest")),
        dark_pool_volume=parse_number_or(row.get("dark_pool_volume")),
    )


def parse_strike_levels(rows: Iterable[Dict[str, Any]]) -> List[StrikeLevel]:
    levels = []
    for row in rows:
        level = parse_strike_level(row)
        if level is not None:
            levels.append(level)
    return levels


def one_day_levels(
    price: float,
    exposure: float,
    exposure_1dte_oi: float,
    previous_price: float,
    previous_exposure: float,
    row: Optional[Dict[str, Any]] = None,
) -> Tuple[float, float, float]:
    """
    Next-day wall strike, block size and drive for one record.

    Provider values win when present. Otherwise the wall is spot rounded to
    the nearest 25, the block is 8% of 1DTE open-interest exposure and the
    drive is ``|d exposure / d price| / 1e6`` (0.45 when price did not move).
    Drive is always clamped to [0, 1].
    """
    row = row or {}
    wall = parse_number_or(row.get("wall_1dte"), math.floor(price / 25 + 0.5) * 25)
    block = parse_number_or(row.get("block_1dte"), math.floor(exposure_1dte_oi * 0.08 + 0.5))

    drive = parse_number_or(row.get("drive_1dte"), fallback=float("nan"))
    if math.isnan(drive):
        price_delta = price - previous_price
        if price_delta != 0:
            drive = abs((exposure - previous_exposure) / price_delta) / 1_000_000
        else:
            drive = 0.45
    drive = round(min(1.0, max(0.0, drive)), 2)
    return wall, block, drive


def parse_snapshot(
    records: Iterable[Dict[str, Any]],
    ticker: str,
    strikes: Optional[List[StrikeLevel]] = None,
    previous_price: Optional[float] = None,
) -> Optional[MarketSnapshot]:
    """Build a snapshot from the latest time-stamped record.

    Returns None when no record carries a parseable ``time``.
    """
    stamped = []
    for row in records:
        ts = parse_timestamp(row.get("time"))
        if ts is not None:
            stamped.append((ts, row))
    if not stamped:
        return None

    stamped.sort(key=lambda item: item[0])
    timestamp, latest = stamped[-1]
    prior = stamped[-2][1] if len(stamped) > 1 else None
    if previous_price is None and prior is not None:
        previous_price = parse_number_or(prior.get("price"), fallback=0.0) or None

    price = parse_number_or(latest.get("price"), previous_price if previous_price is not None else 0.0)
    exposure = parse_number_or(latest.get("exposure"))

    oi_raw = latest.get("exposure_oi", latest.get("open_interest", latest.get("oi")))
    exposure_oi = parse_number_or(oi_raw, abs(exposure * 1.5))
    exposure_1dte = parse_number_or(latest.get("exposure_1dte"), exposure * 0.42)
    exposure_1dte_oi = parse_number_or(latest.get("exposure_1dte_oi"), exposure_oi * 0.6)

    # drive compares against the prior record of the same payload only
    if prior is not None:
        prior_price = parse_number_or(prior.get("price"), price)
        prior_exposure = parse_number_or(prior.get("exposure"), exposure)
    else:
        prior_price, prior_exposure = price, exposure
    wall_1dte, block_1dte, drive_1dte = one_day_levels(
        price, exposure, exposure_1dte_oi, prior_price, prior_exposure, row=latest
    )

    vix = parse_number_or(latest.get("vix"), fallback=float("nan"))
    implied_move = parse_number_or(latest.get("implied_move"), fallback=float("nan"))

    snapshot = MarketSnapshot(
        timestamp=timestamp,
        ticker=ticker.upper(),
        price=price,
        exposure=exposure,
        exposure_oi=exposure_oi,
        exposure_1dte=exposure_1dte,
        exposure_1dte_oi=exposure_1dte_oi,
        wall_1dte=wall_1dte,
        block_1dte=block_1dte,
        drive_1dte=drive_1dte,
        volume=parse_number_or(latest.get("volume")),
        call_premium=parse_number_or(latest.get("call_premium")),
        put_premium=parse_number_or(latest.get("put_premium")),
        vix=None if math.isnan(vix) else vix,
        implied_move=None if math.isnan(implied_move) else implied_move,
        strikes=strikes or [],
    )
    logger.debug(f"Parsed snapshot {snapshot.ticker} @ {timestamp.isoformat()} price={price:.2f}")
    return snapshot
