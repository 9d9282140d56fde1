"""
Featurization pipeline.

One structure flows through adapt -> spatial index -> per-residue geometry
-> interaction detection -> assembly. Batches fan out one task per input
over a process pool; nothing mutable is shared between tasks, and results
come back in input order.

Usage:
    from bbqfeat.pipeline import featurize_batch
    from bbqfeat.io import StructureInput

    results, summary = featurize_batch(
        [StructureInput('2gb1.cif', 'A')], config, num_workers=4, output_dir='out'
    )
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from tqdm import tqdm

from .config import FeaturizerConfig
from .errors import AdaptationError, ConfigError, IndexBuildError, InputError
from .features.assembler import FeatureRecord, assemble
from .features.residue_geometry import compute_structure_geometry
from .interaction.detector import Thresholds, detect
from .io.inputs import StructureInput, read_structure
from .io.writers import write_records
from .spatial.index import SpatialIndex
from .structure.adapter import adapt
from .structure.model import Structure
from .structure.parsed import ParsedStructure
from .structure.validator import SequenceValidator

logger = logging.getLogger(__name__)

BatchItem = Union[StructureInput, ParsedStructure, Structure]

FAILED_LIST_NAME = 'failed_structures.txt'


@dataclass
class StructureResult:
    """Outcome of one batch item."""
    name: str
    success: bool
    message: str = 'ok'
    records: Optional[List[FeatureRecord]] = None    # kept when not written to disk
    records_written: int = 0
    residues_dropped: int = 0
    output_path: Optional[str] = None


@dataclass
class BatchSummary:
    processed: int = 0
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    residues_dropped: int = 0
    records_written: int = 0

    @classmethod
    def from_results(cls, results: Sequence[StructureResult]) -> "BatchSummary":
        summary = cls()
        for result in results:
            if result.success:
                summary.processed += 1
                summary.residues_dropped += result.residues_dropped
                summary.records_written += result.records_written
            else:
                summary.skipped.append((result.name, result.message))
        return summary

    def log(self, elapsed: Optional[float] = None) -> None:
        total = self.processed + len(self.skipped)
        logger.info("=" * 60)
        logger.info("SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Total structures: {total}")
        logger.info(f"Processed: {self.processed}")
        logger.info(f"Skipped: {len(self.skipped)}")
        logger.info(f"Residues dropped: {self.residues_dropped}")
        logger.info(f"Records written: {self.records_written}")
        if elapsed is not None and elapsed > 0:
            logger.info(f"Time: {elapsed:.1f}s ({elapsed/60:.1f} min)")
            logger.info(f"Speed: {total / elapsed:.2f} structures/sec")

        if self.skipped:
            logger.info("Skipped structures:")
            for name, reason in self.skipped[:20]:
                logger.info(f"  {name}: {reason[:80]}")
            if len(self.skipped) > 20:
                logger.info(f"  ... and {len(self.skipped) - 20} more")


# ============================================================================
# Single structure
# ============================================================================

def _featurize(
    raw: Union[ParsedStructure, Structure],
    config: FeaturizerConfig,
    validator: Optional[SequenceValidator] = None,
) -> Tuple[Structure, List[FeatureRecord]]:
    structure = adapt(raw, config, validator)
    index = SpatialIndex.build(structure)
    geometry = compute_structure_geometry(structure)
    interactions = detect(structure, index, Thresholds.from_config(config))
    records = assemble(structure, geometry, interactions, config)
    return structure, records


def featurize_structure(
    raw: Union[ParsedStructure, Structure],
    config: Optional[FeaturizerConfig] = None,
    validator: Optional[SequenceValidator] = None,
) -> List[FeatureRecord]:
    """
    Feature records of one parsed (or already adapted) structure.

    Raises:
        AdaptationError: No usable chain, or unsupported chemistry
        IndexBuildError: The structure has no atoms to index
        InconsistentWindowConfig: Window settings cannot be honored
    """
    config = config or FeaturizerConfig()
    return _featurize(raw, config, validator)[1]


def _item_name(item: BatchItem) -> str:
    if isinstance(item, StructureInput):
        return item.name
    return item.source_id


def process_item(
    item: BatchItem,
    config: FeaturizerConfig,
    output_dir: Optional[str] = None,
    fmt: str = 'pt',
) -> StructureResult:
    """
    Featurize one batch item; per-structure failures become a skipped result.

    Configuration errors are not per-structure and propagate.
    """
    name = _item_name(item)
    try:
        if isinstance(item, StructureInput):
            raw = read_structure(item.path, item.chain_id, remove_ligands=config.remove_ligands)
        else:
            raw = item
        structure, records = _featurize(raw, config)

        result = StructureResult(
            name=name,
            success=True,
            message=f"ok ({len(records)} residues)",
            records_written=len(records),
            residues_dropped=structure.dropped_residues,
        )
        if output_dir is None:
            result.records = records
        else:
            output_path = Path(output_dir) / f"{name}.{fmt}"
            write_records(records, output_path, fmt, config)
            result.output_path = str(output_path)
        return result
    except ConfigError:
        raise
    except (AdaptationError, IndexBuildError, InputError) as e:
        logger.warning(f"{name}: skipped ({type(e).__name__}: {e})")
        return StructureResult(name=name, success=False, message=f"{type(e).__name__}: {e}")
    except Exception as e:
        logger.error(f"{name}: failed ({type(e).__name__}: {e})")
        return StructureResult(name=name, success=False, message=f"{type(e).__name__}: {e}")


def _process_wrapper(args: Tuple) -> StructureResult:
    """Wrapper for multiprocessing."""
    item, config, output_dir, fmt = args
    return process_item(item, config, output_dir, fmt)


# ============================================================================
# Batch
# ============================================================================

def write_failed_list(skipped: Sequence[Tuple[str, str]], output_dir: str) -> Path:
    fail_log = Path(output_dir) / FAILED_LIST_NAME
    with open(fail_log, 'w') as f:
        for name, reason in skipped:
            f.write(f"{name}\t{reason}\n")
    return fail_log


def featurize_batch(
    inputs: Sequence[BatchItem],
    config: Optional[FeaturizerConfig] = None,
    num_workers: int = 1,
    output_dir: Optional[str] = None,
    fmt: str = 'pt',
    progress: bool = False,
) -> Tuple[List[StructureResult], BatchSummary]:
    """
    Featurize many structures under one validated configuration.

    Args:
        inputs: StructureInputs (files) or in-memory parsed/adapted structures
        config: Run configuration, validated before any structure is read
        num_workers: Worker processes; 1 runs in the calling process
        output_dir: Write one file per structure here; None keeps records
            in the returned results
        fmt: Output format ('pt' or 'tsv')
        progress: Show a tqdm progress bar

    Returns:
        Tuple of (results in input order, BatchSummary)
    """
    config = (config or FeaturizerConfig()).validate()
    if output_dir is not None:
        Path(output_dir).mkdir(parents=True, exist_ok=True)

    start_time = time.time()
    results: List[Optional[StructureResult]] = [None] * len(inputs)

    if num_workers <= 1 or len(inputs) <= 1:
        with tqdm(inputs, desc="Processing", unit="structure", disable=not progress) as pbar:
            for i, item in enumerate(pbar):
                results[i] = process_item(item, config, output_dir, fmt)
                pbar.set_postfix_str(f"{results[i].name}: {'ok' if results[i].success else 'SKIPPED'}")
    else:
        logger.info(f"Using {num_workers} workers")
        tasks = [(item, config, output_dir, fmt) for item in inputs]
        with ProcessPoolExecutor(max_workers=num_workers) as executor:
            futures = {executor.submit(_process_wrapper, task): i for i, task in enumerate(tasks)}
            ok = fail = 0
            with tqdm(total=len(futures), desc="Processing", unit="structure",
                      disable=not progress) as pbar:
                for future in as_completed(futures):
                    result = future.result()
                    results[futures[future]] = result
                    if result.success:
                        ok += 1
                    else:
                        fail += 1
                    pbar.update(1)
                    pbar.set_postfix_str(f"ok={ok}, skipped={fail}")

    summary = BatchSummary.from_results(results)
    summary.log(time.time() - start_time)

    if output_dir is not None and summary.skipped:
        fail_log = write_failed_list(summary.skipped, output_dir)
        logger.info(f"Skipped structures saved to: {fail_log}")

    return results, summary
