"""Configuration schema and loading for buildtrigger."""

from .loader import load_workspace_config
from .schema import BuildConfig, ProjectConfig, TriggerConfig, WorkspaceConfig

__all__ = [
    "BuildConfig",
    "ProjectConfig",
    "TriggerConfig",
    "WorkspaceConfig",
    "load_workspace_config",
]
