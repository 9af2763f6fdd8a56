#!/usr/bin/env python3
"""
Main control script for the light-flavour tracking x PID efficiency analysis

This script:
1. Loads the TOML configuration (binning, species, cuts, branches)
2. Reads MC events (truth particles + reconstructed tracks) from ROOT files
3. Fills generated and reconstructed (y, phi, pT) histograms per species,
   charge and track cut
4. Writes the histograms to a ROOT file
5. Optionally writes efficiency tables and plots

Usage:
    # Run with the packaged configuration
    lfeff-efficiency mc_file1.root mc_file2.root

    # Custom output and a quick test on 1000 events
    lfeff-efficiency mc.root --output results/AnalysisResults.root --max-events 1000

    # Also produce CSV tables and plots
    lfeff-efficiency mc.root --tables-dir output/tables --plots-dir output/plots
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from lfeff.modules.accumulator import EfficiencyAccumulator
from lfeff.modules.config import DEFAULT_CONFIG_PATH, TOMLConfig
from lfeff.modules.cuts import DEFAULT_CUTS
from lfeff.modules.efficiency import EfficiencyCalculator
from lfeff.modules.event import EventReader
from lfeff.modules.event_selection import AcceptAllEvents
from lfeff.modules.exceptions import AnalysisError
from lfeff.utils.logging_config import get_tqdm_kwargs, setup_logging, suppress_warnings


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Tracking x PID efficiencies for light-flavour species",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fill histograms from two MC files
  lfeff-efficiency mc_1.root mc_2.root

  # Quick test on 1000 events with verbose logging
  lfeff-efficiency mc.root --max-events 1000 -v
        """,
    )

    parser.add_argument("inputs", nargs="+", help="Input ROOT files with the event tree")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--output", default=None, help="Output ROOT file (default: from config)")
    parser.add_argument("--max-events", type=int, default=None, help="Process at most this many events")
    parser.add_argument("--tables-dir", default=None, help="Write efficiency CSV tables here (default: [output] tables_dir)")
    parser.add_argument("--plots-dir", default=None, help="Write efficiency plots here (default: [output] plots_dir)")
    parser.add_argument(
        "--no-event-selection",
        action="store_true",
        help="Accept all events (skip the vertex selection)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    return parser.parse_args(argv)


def build_accumulator(config: TOMLConfig, accept_all: bool = False) -> EfficiencyAccumulator:
    """Create the accumulator from the configuration"""
    ts = config.track_selection
    return EfficiencyAccumulator(
        species=config.species,
        cuts=DEFAULT_CUTS,
        event_gate=AcceptAllEvents() if accept_all else config.make_event_selector(),
        binning=config.binning,
        max_n_sigma_tpc=float(ts.get("max_n_sigma_tpc", 3.0)),
        max_n_sigma_tof=float(ts.get("max_n_sigma_tof", 3.0)),
        min_tof_length=float(ts.get("min_tof_length", 350.0)),
        name=config.output.get("directory", "LFEfficiencies"),
    )


def run(args) -> int:
    """
    Run the analysis

    Returns:
        Process exit code
    """
    logger = logging.getLogger("LFEfficiencies")

    config = TOMLConfig(args.config)
    accumulator = build_accumulator(config, accept_all=args.no_event_selection)
    reader = EventReader(
        args.inputs,
        species=accumulator.species,
        tree=config.input.get("tree", "LFEffTree"),
        branches=config.branches,
        status_bits=config.status_bits,
        step_size=config.input.get("step_size", "100 MB"),
    )

    accumulator.create_outputs()
    for event in tqdm(reader.events(max_events=args.max_events), **get_tqdm_kwargs("Events")):
        accumulator.process_event(event)
    collection = accumulator.terminate()

    output = Path(args.output or config.output.get("file", "AnalysisResults.root"))
    collection.write(output, directory=config.output.get("directory"))

    # command line locations take precedence over [output]
    tables_dir = args.tables_dir or config.output.get("tables_dir")
    plots_dir = args.plots_dir or config.output.get("plots_dir")

    calculator = EfficiencyCalculator(collection)
    if tables_dir:
        calculator.save_tables(tables_dir)
    if plots_dir:
        from lfeff.modules.plotter import EfficiencyPlotter

        EfficiencyPlotter(plots_dir).plot_all(calculator)

    logger.info(f"Done: {accumulator.n_events_accepted}/{accumulator.n_events_seen} events accepted")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    suppress_warnings()
    logger = setup_logging(args.verbose)

    try:
        return run(args)
    except AnalysisError as e:
        logger.error(f"Analysis aborted: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
