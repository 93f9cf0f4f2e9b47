"""
Slice export for BeatSlicer.
Writes each region of a decoded track to its own audio file.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Sequence

import numpy as np
import soundfile as sf

from .types import AudioArray, Region

logger = logging.getLogger("BeatSlicer")


def region_samples(data: AudioArray, samplerate: int, region: Region) -> AudioArray:
    """Samples covered by `region`, clamped to the track."""
    total = len(data)
    start = max(0, min(int(round(region.start * samplerate)), total))
    end = max(start, min(int(round(region.end * samplerate)), total))
    return np.ascontiguousarray(data[start:end])


def slice_filename(stem: str, region: Region, extension: str = "wav") -> str:
    return f"{stem}_slice_{region.index + 1:02d}.{extension}"


def export_regions(
    directory: str | Path,
    stem: str,
    data: AudioArray,
    samplerate: int,
    regions: Sequence[Region]
) -> list[Path]:
    """
    Write one WAV file per region into `directory`.

    Args:
        directory: Target folder, created if missing
        stem: File name prefix, usually the source track's stem
        data: Decoded samples, shape (samples,) or (samples, channels)
        samplerate: Sample rate of `data`
        regions: Regions to export; empty ones are skipped

    Returns:
        Paths of the files written, in region order
    """
    if samplerate <= 0:
        raise ValueError(f"Invalid sample rate: {samplerate}")

    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for region in regions:
        samples = region_samples(data, samplerate, region)
        if len(samples) == 0:
            logger.debug("Skipping empty region %d", region.index)
            continue
        path = target / slice_filename(stem, region)
        sf.write(str(path), samples, samplerate)
        written.append(path)

    logger.info("Exported %d slice(s) to %s", len(written), target)
    return written
