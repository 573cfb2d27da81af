"""Human-readable formatter for analytic packets and alerts."""

from typing import List, Optional

from schemas.core_schemas import (
    AlertStatistics,
    AnalyticPacket,
    ExpectedRange,
    GexRegime,
    RankedStrike,
    StrikeLevel,
    SystemAlert,
    TradingAlert,
)


def format_packet(packet: AnalyticPacket, uplink: Optional[str] = None) -> str:
    """Format an AnalyticPacket into human-readable output."""
    lines = []

    # Header
    lines.append("")
    lines.append("=" * 80)
    lines.append(f"  GEX SENTINEL: {packet.ticker} @ {packet.price:,.2f}")
    lines.append(f"  Time: {packet.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    if uplink:
        lines.append(f"  Uplink: {uplink.upper()}")
    lines.append("=" * 80)

    # Section 1: Exposure and momentum
    lines.append("")
    lines.append("-" * 80)
    lines.append("  EXPOSURE & MOMENTUM")
    lines.append("-" * 80)
    if packet.regime == GexRegime.POSITIVE:
        regime_meaning = "Dealers dampen moves, expect mean reversion"
    else:
        regime_meaning = "Dealers amplify moves, expect expansion"
    lines.append(f"    Regime: {packet.regime.value}")
    lines.append(f"      -> {regime_meaning}")
    lines.append(f"    Exposure 0DTE: {packet.exposure:+,.0f} (change {packet.exposure_change:+,.0f})")
    lines.append(f"    Exposure 0DTE OI: {packet.exposure_oi:+,.0f}")
    lines.append(f"    Exposure 1DTE: {packet.exposure_1dte:+,.0f} | OI: {packet.exposure_1dte_oi:+,.0f}")
    wall = f"{packet.wall_1dte:,.0f}" if packet.wall_1dte is not None else "n/a"
    lines.append(f"    1DTE Wall: {wall} | Block: {packet.block_1dte:+,.0f} | Drive: {packet.drive_1dte:.2f}")
    lines.append(f"    Momentum: {packet.momentum:+,.0f}")
    lines.append(f"    Velocity: {packet.velocity:+,.0f}")
    lines.append(f"    Acceleration: {packet.acceleration:+,.0f}")
    lines.append(f"    Order Flow Intensity: {packet.order_flow_intensity:.1f} / 100")

    # Section 2: Structural levels
    lines.append("")
    lines.append("-" * 80)
    lines.append("  STRUCTURAL LEVELS")
    lines.append("-" * 80)
    if packet.levels.is_empty:
        lines.append("    Insufficient strike data")
    else:
        lines.append(_format_level("Dominant Node", packet.levels.dominant_node))
        lines.append(_format_level("Flip Node", packet.levels.flip_node))
        lines.append(_format_level("High Volume Node", packet.levels.high_volume_node))
        lines.append(_format_level("Most Positive", packet.levels.most_positive))
        lines.append(_format_level("Most Negative", packet.levels.most_negative))
        lines.extend(_format_ranked("Top Open Interest", packet.levels.top_open_interest))
        lines.extend(_format_ranked("Top Dark Pool", packet.levels.top_dark_pool))
    if packet.volatility_trigger is not None:
        lines.append(f"    Volatility Trigger: {packet.volatility_trigger:,.2f}")

    # Section 3: Expected ranges
    lines.append("")
    lines.append("-" * 80)
    lines.append(f"  EXPECTED RANGES (VIX {packet.vix:.2f}, implied move {packet.implied_move:.2f})")
    lines.append("-" * 80)
    for expected in (packet.ranges.rule_of_16, packet.ranges.implied_move, packet.ranges.exposure_adjusted):
        lines.append(_format_range(expected))

    lines.append("")
    lines.append("=" * 80)
    return "\n".join(lines)


def _format_level(label: str, level: Optional[StrikeLevel]) -> str:
    if level is None:
        return f"    {label}: n/a"
    return f"    {label}: {level.price:,.0f} ({level.side}, net GEX {level.net_gex:+,.0f})"


def _format_ranked(label: str, ranked: List[RankedStrike]) -> List[str]:
    if not ranked:
        return [f"    {label}: n/a"]
    entries = ", ".join(f"{r.price:,.0f} {r.side} ({r.value:,.0f})" for r in ranked)
    return [f"    {label}: {entries}"]


def _format_range(expected: ExpectedRange) -> str:
    return f"    {expected.model:<18} +/-{expected.points:7.2f}  [{expected.low:,.2f} - {expected.high:,.2f}]"


def format_alert(alert: TradingAlert) -> str:
    lines = [
        f"  [{alert.direction.value}] {alert.timestamp.strftime('%H:%M:%S')} @ {alert.price:,.2f}  ({alert.id})",
        f"    Regime: {alert.regime}",
    ]
    if alert.pattern:
        lines.append(f"    Pattern: {alert.pattern}")
    if alert.rationale:
        for row in alert.rationale.splitlines():
            if row.strip():
                lines.append(f"    {row.strip()}")
    lines.append(f"    Risk: {alert.risk}")
    return "\n".join(lines)


def format_alert_statistics(stats: AlertStatistics) -> str:
    lines = [
        f"  Alerts: {stats.total} (LONG {stats.long} | SHORT {stats.short} | NEUTRAL {stats.neutral})",
    ]
    for pattern, count in sorted(stats.by_pattern.items(), key=lambda item: -item[1]):
        lines.append(f"    {pattern}: {count}")
    return "\n".join(lines)


def format_system_alert(alert: SystemAlert) -> str:
    """One-line banner for a system alert."""
    code = f"[{alert.code}] " if alert.code else ""
    retry = "retrying" if alert.retryable else "not retryable"
    suffix = " | DEGRADED" if alert.degraded else ""
    return (
        f"  {alert.severity.value.upper()}: {code}{alert.message} "
        f"({alert.consecutive_failures} consecutive, {retry}){suffix}"
    )
