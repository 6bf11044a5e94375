"""
Audio Assets - Loading named sound files for streamed layers and narration.

Loaders return mono float32 samples at the engine's sample rate.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np
import soundfile as sf

from storygraph.errors import AssetNotFoundError

logger = logging.getLogger(__name__)


def to_mono(data: np.ndarray) -> np.ndarray:
    """Average the channels of a (frames, channels) array."""
    if data.ndim > 1:
        data = data.mean(axis=1)
    return data.astype(np.float32)


def resample(data: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Resample mono audio by linear interpolation."""
    if source_rate == target_rate or len(data) == 0:
        return data.astype(np.float32)

    duration = len(data) / source_rate
    target_length = max(1, int(duration * target_rate))

    x_original = np.linspace(0, 1, len(data))
    x_target = np.linspace(0, 1, target_length)
    return np.interp(x_target, x_original, data).astype(np.float32)


class AssetLoader(ABC):
    """Source of decoded audio assets addressed by name."""

    @abstractmethod
    def load(self, name: str, sample_rate: int) -> np.ndarray:
        """Load an asset as mono float32 at sample_rate.

        Raises:
            AssetNotFoundError: If no asset has that name.
        """
        ...

    def exists(self, name: str) -> bool:
        return True


class FileAssetLoader(AssetLoader):
    """Loads assets from a directory with soundfile.

    Names without an extension are tried against each known extension.

    Example:
        loader = FileAssetLoader("assets")
        music = loader.load("soothing-music.mp3", 24000)
    """

    EXTENSIONS = (".wav", ".flac", ".ogg", ".mp3")

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def resolve(self, name: str) -> Path | None:
        """Path of the asset, or None if it does not exist."""
        path = self.directory / name
        if path.suffix and path.is_file():
            return path
        for ext in self.EXTENSIONS:
            candidate = self.directory / f"{name}{ext}"
            if candidate.is_file():
                return candidate
        return None

    def exists(self, name: str) -> bool:
        return self.resolve(name) is not None

    def load(self, name: str, sample_rate: int) -> np.ndarray:
        path = self.resolve(name)
        if path is None:
            raise AssetNotFoundError(name, details={"directory": str(self.directory)})

        data, sr = sf.read(str(path))
        audio = resample(to_mono(data), sr, sample_rate)
        logger.debug(f"Loaded asset {path} ({len(audio) / sample_rate:.1f}s)")
        return audio


__all__ = [
    "to_mono",
    "resample",
    "AssetLoader",
    "FileAssetLoader",
    "AssetNotFoundError",
]
