"""Generate AIDL preprocess files listing a project's Parcelable classes."""

from .generator import ParcelableIndexGenerator, generate, generate_many
from .models import CancellationToken, GenerationResult, GenerationStatus, RunState

__all__ = [
    "CancellationToken",
    "GenerationResult",
    "GenerationStatus",
    "ParcelableIndexGenerator",
    "RunState",
    "generate",
    "generate_many",
]

__version__ = "0.1.0"
