#!/usr/bin/env python
"""
Batch backbone/residue-pair featurization of protein structures.

Inputs are a single structure file (-i, optionally with -c to select a
chain) or a list file of PDB IDs (-l) resolved against a folder of mmCIF/PDB
files (-p). One output file per structure is written to --output_dir.

Usage:
    bbqfeat-featurize -i 2gb1.cif -c A --output_dir out
    bbqfeat-featurize -l pdb_ids.txt -p /data/mmcif --output_dir out --num_workers 8
    bbqfeat-featurize -l pdb_ids.txt -p /data/mmcif --output_dir out --format tsv --max_partners 8
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from bbqfeat import __version__
from bbqfeat.config import FeaturizerConfig
from bbqfeat.constants import DEFAULT_OUTPUT_FORMAT, OUTPUT_FORMATS, PADDING_POLICIES
from bbqfeat.errors import ConfigError, InputError
from bbqfeat.io.inputs import StructureInput, read_list_file
from bbqfeat.pipeline import featurize_batch

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Backbone geometry and residue-pair interaction featurizer'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-i', '--input_file', type=str, default=None,
                        help='A single mmCIF or PDB file to process')
    parser.add_argument('-c', '--select_chain', type=str, default=None,
                        help='Chain to process from the file given with -i')
    parser.add_argument('-l', '--list_file', type=str, default=None,
                        help='File with a list of PDB IDs (optionally with chain, e.g. 2gb1A)')
    parser.add_argument('-p', '--path', type=str, default='',
                        help='Folder with mmCIF/PDB files for IDs given with -l')
    parser.add_argument('--output_dir', type=str, required=True,
                        help='Output directory for feature files')
    parser.add_argument('--format', type=str, default=DEFAULT_OUTPUT_FORMAT, choices=OUTPUT_FORMATS,
                        help=f'Output format (default: {DEFAULT_OUTPUT_FORMAT})')
    parser.add_argument('--num_workers', type=int, default=1,
                        help='Number of parallel workers (default: 1)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Limit number of structures to process')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON file with FeaturizerConfig options')

    # Overrides applied on top of --config
    parser.add_argument('--contact_radius', type=float, default=None)
    parser.add_argument('--hbond_distance_max', type=float, default=None)
    parser.add_argument('--hbond_angle_min', type=float, default=None)
    parser.add_argument('--max_partners', type=int, default=None)
    parser.add_argument('--sequence_window', type=int, default=None)
    parser.add_argument('--neighbor_radius', type=float, default=None)
    parser.add_argument('--window_padding_policy', type=str, default=None,
                        help=f'One of {list(PADDING_POLICIES)} or "none"')
    parser.add_argument('--keep_ligands', action='store_true',
                        help='Keep hetero groups (they are then dropped as unsupported residues)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def load_config(args: argparse.Namespace) -> FeaturizerConfig:
    config = FeaturizerConfig.from_json(args.config) if args.config else FeaturizerConfig()
    config = config.with_overrides(
        contact_radius=args.contact_radius,
        hbond_distance_max=args.hbond_distance_max,
        hbond_angle_min=args.hbond_angle_min,
        max_partners=args.max_partners,
        sequence_window=args.sequence_window,
        neighbor_radius=args.neighbor_radius,
        window_padding_policy=args.window_padding_policy,
        remove_ligands=False if args.keep_ligands else None,
    )
    return config.validate()


def collect_inputs(args: argparse.Namespace) -> List[StructureInput]:
    if args.list_file:
        return read_list_file(args.list_file, args.path)
    if args.input_file:
        return [StructureInput(args.input_file, args.select_chain)]
    raise InputError("No input file provided! Use -i or -l options to specify an input file!")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        config = load_config(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    try:
        inputs = collect_inputs(args)
    except InputError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    if args.limit:
        inputs = inputs[:args.limit]
        logger.info(f"Limited to {len(inputs)} structures")

    if not inputs:
        logger.info("No structures to process")
        return 0

    logger.info(
        f"Options: contact_radius={config.contact_radius}, "
        f"hbond_distance_max={config.hbond_distance_max}, "
        f"max_partners={config.max_partners}, "
        f"window_padding_policy={config.window_padding_policy}, format={args.format}"
    )
    Path(args.output_dir).mkdir(parents=True, exist_ok=True)

    try:
        featurize_batch(
            inputs,
            config,
            num_workers=args.num_workers,
            output_dir=args.output_dir,
            fmt=args.format,
            progress=True,
        )
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR
    return 0


if __name__ == '__main__':
    sys.exit(main())
