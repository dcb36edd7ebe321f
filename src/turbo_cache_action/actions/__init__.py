"""CI platform adapters."""

from turbo_cache_action.actions.base import (
    EnvironmentPublisher,
    InputSource,
    Reporter,
    StateStore,
)
from turbo_cache_action.actions.github import GithubActionsRuntime
from turbo_cache_action.actions.memory import MemoryRuntime

__all__ = [
    "EnvironmentPublisher",
    "GithubActionsRuntime",
    "InputSource",
    "MemoryRuntime",
    "Reporter",
    "StateStore",
]
