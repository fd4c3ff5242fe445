#!/usr/bin/env python3
"""Command-line interface of the muon skimmer."""

import argparse
import os
import pathlib
import sys
from typing import List

import numpy as np

from muskim.config import load_config_file
from muskim.config.load import resolve_config_path
from muskim.config.operations import parse_value, set_nested_value


def load_entry_list(path):
    """Parses a text file which lists one entry number per line.

    Parameters
    ----------
    path : str
        Path to the text file

    Returns
    -------
    List[int]
        List of entry numbers
    """
    return np.loadtxt(path, dtype=np.int64, ndmin=1).tolist()


def main(
    config: str,
    source: List[str],
    source_list: str,
    output: str,
    n: int,
    nskip: int,
    entry_list: str,
    skip_entry_list: str,
    mode: str,
    num_workers: int,
    config_overrides: List[str],
):
    """Main driver for muon skimming.

    Performs these basic functions:
    - Update the configuration with the command-line arguments
    - Run the skimming chain

    Parameters
    ----------
    config : str
        Path to the configuration file
    source : List[str]
        List of paths to the input files
    source_list : str
        Path to a text file containing a list of data file paths
    output : str
        Path to the output file
    n : int
        Number of entries to process
    nskip : int
        Number of entries to skip
    entry_list : str
        Path to a text file containing a list of entries to process
    skip_entry_list : str
        Path to a text file containing a list of entries to skip
    mode : str
        Name of the pipeline mode
    num_workers : int
        Number of threads used to process collisions
    config_overrides : List[str]
        List of config overrides in the form "key.path=value"
    """
    # Load the configuration tools to find the appropriate config file
    cfg_file = resolve_config_path(config, current_dir=os.getcwd())
    cfg = load_config_file(cfg_file)

    # If there is no base block, build one
    if cfg.get("base") is None:
        cfg["base"] = {}

    # Propagate the configuration parent directory to enable relative paths
    cfg["base"]["parent_path"] = str(pathlib.Path(cfg_file).parent)

    # The configuration must minimally contain a reader and a conditions block
    if "io" not in cfg or cfg["io"].get("reader") is None:
        raise KeyError("Configuration file must contain an `io.reader` block.")
    if "conditions" not in cfg:
        raise KeyError("Configuration file must contain a `conditions` block.")

    # Override the input command-line information into the configuration
    io_mapping = {
        "file_keys": source if source is not None else source_list,
        "n_entry": n,
        "n_skip": nskip,
        "entry_list": load_entry_list(entry_list) if entry_list else None,
        "skip_entry_list": (
            load_entry_list(skip_entry_list) if skip_entry_list else None
        ),
    }
    for io_key, io_value in io_mapping.items():
        if io_value is not None:
            cfg["io"]["reader"][io_key] = io_value

    # Override the output path if provided
    if output is not None:
        if cfg["io"].get("writer") is None:
            cfg["io"]["writer"] = {"name": "hdf5"}
        cfg["io"]["writer"]["file_name"] = output

    # Override the pipeline mode and the parallelism if provided
    if mode is not None:
        if cfg.get("skim") is None:
            cfg["skim"] = {}
        cfg["skim"]["mode"] = mode
    if num_workers is not None:
        cfg["base"]["num_workers"] = num_workers

    # Apply any generic config overrides from --set arguments
    if config_overrides:
        for override in config_overrides:
            if "=" not in override:
                raise ValueError(
                    f"Invalid --set format: '{override}'. "
                    f"Expected format: 'key.path=value'"
                )

            key_path, value_str = override.split("=", 1)
            value = parse_value(value_str.strip())
            cfg, _ = set_nested_value(cfg, key_path.strip(), value)

    # Load the driver only once the configuration is complete (numba compile)
    from muskim.main import run

    run(cfg)


def cli():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="muskim - Forward primary muon skimmer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  muskim --version                                  Show version information
  muskim -c skim.yaml                               Run the skim with a config file
  muskim -c skim.yaml -s AO2D_*.h5 -o muons.h5      Override the input/output
  muskim -c skim.yaml --mode mc_ttca                Pick a pipeline mode
  muskim -c skim.yaml --set selection.min_pt=0.5    Override config parameters
""",
    )

    # Add a version command
    parser.add_argument(
        "--version", "-v", action="version", version=f"muskim {get_version()}"
    )

    # Add config file argument
    parser.add_argument(
        "-c", "--config", required=True, help="Path to the configuration file"
    )

    # Add mutually exclusive group for source input
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-s", "--source", nargs="+", type=str, help="List of paths to the input files"
    )
    group.add_argument(
        "-S",
        "--source-list",
        help="Path to a text file containing a list of data file paths",
    )

    # Add output argument
    parser.add_argument("-o", "--output", help="Path to the output file")

    # Add entry and skip arguments
    parser.add_argument(
        "-n", "--iterations", type=int, help="Number of entries to process"
    )

    parser.add_argument("--nskip", type=int, help="Number of entries to skip")

    parser.add_argument(
        "--entry-list",
        help="Path to a text file containing a list of entries to process",
    )

    parser.add_argument(
        "--skip-entry-list",
        help="Path to a text file containing a list of entries to skip",
    )

    # Add pipeline arguments
    parser.add_argument(
        "--mode",
        help="Pipeline mode (sa, ttca, sa_swt, ttca_swt, mc_sa, mc_ttca)",
    )

    parser.add_argument(
        "-j", "--num-workers", type=int, help="Number of threads to process collisions"
    )

    # Add option to dynamically override any config parameter using dot notation
    parser.add_argument(
        "--set",
        action="append",
        dest="config_overrides",
        metavar="KEY=VALUE",
        help="Override any config parameter using dot notation "
        "(e.g., --set selection.min_pt=0.5). "
        "Can be used multiple times for multiple overrides.",
    )

    # If no arguments provided, show help
    if len(sys.argv) == 1:
        parser.print_help()
        return

    # Parse the arguments
    args = parser.parse_args()

    main(
        config=args.config,
        source=args.source,
        source_list=args.source_list,
        output=args.output,
        n=args.iterations,
        nskip=args.nskip,
        entry_list=args.entry_list,
        skip_entry_list=args.skip_entry_list,
        mode=args.mode,
        num_workers=args.num_workers,
        config_overrides=args.config_overrides,
    )


def get_version():
    """Get the package version without importing the numerical stack."""
    from muskim.version import __version__

    return __version__


if __name__ == "__main__":
    cli()
