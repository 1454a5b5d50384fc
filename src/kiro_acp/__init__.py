"""kiro-acp: Agent Client Protocol bridge for the Kiro CLI."""

__version__ = "0.1.0"

from kiro_acp.config import Config, get_config, load_config
from kiro_acp.transcript import TranscriptEvent, TranscriptPipeline

__all__ = [
    "__version__",
    "Config",
    "get_config",
    "load_config",
    "TranscriptEvent",
    "TranscriptPipeline",
]
