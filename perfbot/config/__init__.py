"""Bot configuration: settings, per-repository projects and their job registries."""

from ._config_loader import load_bot_config
from ._schemas import (
    BotConfigSchema,
    DatastoreSettings,
    GitHubSettings,
    JenkinsSettings,
    JobDefinitionSchema,
    ProjectConfigSchema,
)

__all__ = [
    "BotConfigSchema",
    "DatastoreSettings",
    "GitHubSettings",
    "JenkinsSettings",
    "JobDefinitionSchema",
    "ProjectConfigSchema",
    "load_bot_config",
]
