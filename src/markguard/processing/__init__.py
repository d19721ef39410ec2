"""
Processing pipeline components.

This module provides a set of processor classes for the MarkGuard
protect/transform/restore workflow. Each processor implements a specific
stage of the pipeline.
"""

from .base import Processor
from .capture_processor import CaptureProcessor
from .protection_processor import ProtectionProcessor
from .restoration_processor import RepairProcessor, RestorationProcessor
from .transform_processor import TransformProcessor
from .writeback_processor import WriteBackProcessor

__all__ = [
    "CaptureProcessor",
    "Processor",
    "ProtectionProcessor",
    "RepairProcessor",
    "RestorationProcessor",
    "TransformProcessor",
    "WriteBackProcessor",
]
