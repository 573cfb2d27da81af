"""Command line entrypoint for GEX Sentinel."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from loguru import logger

from agents.gamma_agent import GammaRegimeAgent
from cli.result_formatter import (
    format_alert,
    format_alert_statistics,
    format_packet,
    format_system_alert,
)
from config import AppConfig, load_config
from engines.errors import AuthError
from engines.inputs.synthetic_generator import SyntheticSnapshotSource
from engines.inputs.unusual_whales_adapter import UnusualWhalesSpotExposureAdapter
from engines.orchestration.pipeline_runner import MonitoringLoop

# Load environment variables
load_dotenv()

app = typer.Typer(help="GEX Sentinel - dealer gamma exposure monitor")


def setup_logging(verbose: bool = False, log_file: Optional[str] = None, level: str = "INFO") -> None:
    """Setup logging configuration."""
    logger.remove()

    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="100 MB",
            retention="7 days",
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
        )


def build_monitor(config: AppConfig, ticker: Optional[str] = None, synthetic: bool = False) -> MonitoringLoop:
    """Assemble a :class:`MonitoringLoop` with live and synthetic sources."""
    sources = config.data_sources
    fallback = SyntheticSnapshotSource(
        start_price=sources.synthetic_start_price,
        seed=sources.synthetic_seed,
    )

    source = None
    if not synthetic and sources.primary == "unusual_whales":
        try:
            source = UnusualWhalesSpotExposureAdapter(
                base_url=sources.base_url,
                timeout=config.polling.timeout_seconds,
            )
        except AuthError as e:
            logger.warning(f"{e}; running on synthetic data")

    return MonitoringLoop(
        config,
        source=source,
        collaborator=GammaRegimeAgent(config.agent.model_dump()),
        fallback=fallback,
        ticker=ticker,
    )


async def _close(monitor: MonitoringLoop) -> None:
    if isinstance(monitor.source, UnusualWhalesSpotExposureAdapter):
        await monitor.source.aclose()


def _report(monitor: MonitoringLoop) -> None:
    if monitor.system_alert is not None:
        typer.echo(format_system_alert(monitor.system_alert), err=True)
    if monitor.latest_packet is not None:
        typer.echo(format_packet(monitor.latest_packet, uplink=monitor.uplink_status))
    if monitor.alerts:
        typer.echo(format_alert(monitor.alerts[0]))


@app.command()
def run_once(
    ticker: str = typer.Option("SPX", "--ticker", help="Underlying to evaluate."),
    synthetic: bool = typer.Option(False, "--synthetic", help="Use the synthetic data source only."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to a YAML config file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Run a single cycle for ``ticker`` and print the packet and recommendation."""
    config = load_config(config_path)
    setup_logging(verbose, config.tracking.log_file, config.tracking.log_level)
    loop = build_monitor(config, ticker, synthetic)

    async def _once() -> None:
        try:
            await loop.run_cycle(force=True)
            await loop.gate.wait_idle()
        finally:
            await _close(loop)

    asyncio.run(_once())
    _report(loop)
    if loop.latest_packet is None:
        raise typer.Exit(1)


@app.command()
def monitor(
    ticker: str = typer.Option("SPX", "--ticker", help="Underlying to monitor."),
    interval: Optional[float] = typer.Option(None, "--interval", min=0.1, help="Polling interval in seconds."),
    cycles: Optional[int] = typer.Option(None, "--cycles", min=1, help="Stop after this many cycles."),
    synthetic: bool = typer.Option(False, "--synthetic", help="Use the synthetic data source only."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to a YAML config file."),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also log to this file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """
    Run the monitoring loop until interrupted.

    Example:
        # Synthetic data, one cycle every 5 seconds
        python main.py monitor --synthetic --interval 5

        # Ten live cycles on SPX
        python main.py monitor --ticker SPX --cycles 10
    """
    config = load_config(config_path, overrides={"polling": {"interval_seconds": interval}})
    setup_logging(verbose, log_file or config.tracking.log_file, config.tracking.log_level)
    loop = build_monitor(config, ticker, synthetic)

    typer.echo("\n" + "=" * 80)
    typer.echo("GEX SENTINEL MONITOR STARTED")
    typer.echo("=" * 80)
    typer.echo(f"   Ticker: {loop.ticker}")
    typer.echo(f"   Interval: {config.polling.interval_seconds:.0f} seconds")
    typer.echo("   Press Ctrl+C to stop")
    typer.echo("=" * 80 + "\n")

    async def _monitor() -> None:
        try:
            await loop.run(max_cycles=cycles, on_cycle=_report)
        finally:
            await _close(loop)

    try:
        asyncio.run(_monitor())
    except KeyboardInterrupt:
        typer.echo("\nMonitor stopped")

    typer.echo(format_alert_statistics(loop.alert_log.statistics()))


if __name__ == "__main__":
    app()
