from .loader import load_config, load_config_with_overrides
from .schema import (
    APIConfig,
    DisplayConfig,
    GenomeConfig,
    PipelineConfig,
    TrackStyle,
    TrackStyles,
    WindowConfig,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "GenomeConfig",
    "WindowConfig",
    "APIConfig",
    "TrackStyle",
    "TrackStyles",
    "DisplayConfig",
]
