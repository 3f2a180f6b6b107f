"""Plugin interface and the ordered pipeline that runs plugin hooks."""

from __future__ import annotations

import logging
from abc import ABC
from collections.abc import Iterable
from typing import Any

from sam_translate.logging_config import LogContext
from sam_translate.validation.exceptions import PipelineHookError

logger = logging.getLogger(__name__)

BEFORE_TRANSFORM = "before_transform"
AFTER_TRANSFORM = "after_transform"


class Plugin(ABC):  # noqa: B024 - hooks default to no-ops
    """Base class for template plugins.

    Subclasses set ``name`` and ``priority`` (lower runs first) and override
    whichever hook they need. Hooks mutate the template in place.
    """

    name: str = "Plugin"
    priority: int = 1000

    def before_transform(self, template: dict[str, Any]) -> None:
        """Run before any resource is converted."""

    def after_transform(self, template: dict[str, Any]) -> None:
        """Run after every resource has been converted."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


class PluginPipeline:
    """Runs registered plugins in ascending priority order.

    Plugins with equal priority keep their registration order. The first
    hook that raises aborts the run with a :class:`PipelineHookError`.
    """

    def __init__(self, plugins: Iterable[Plugin] | None = None) -> None:
        self._plugins: list[Plugin] = []
        for plugin in plugins or []:
            self.register(plugin)

    def register(self, plugin: Plugin) -> None:
        """Add a plugin to the pipeline.

        Args:
        ----
            plugin: Plugin to add.

        """
        self._plugins.append(plugin)

    @property
    def plugins(self) -> list[Plugin]:
        """Registered plugins in execution order."""
        return sorted(self._plugins, key=lambda p: p.priority)

    def run_before(self, template: dict[str, Any]) -> None:
        self._run(BEFORE_TRANSFORM, template)

    def run_after(self, template: dict[str, Any]) -> None:
        self._run(AFTER_TRANSFORM, template)

    def _run(self, phase: str, template: dict[str, Any]) -> None:
        with LogContext(phase=phase):
            for plugin in self.plugins:
                logger.debug("Running %s.%s (priority %d)", plugin.name, phase, plugin.priority)
                try:
                    getattr(plugin, phase)(template)
                except PipelineHookError:
                    raise
                except Exception as e:
                    logger.warning("Plugin %s failed during %s: %s", plugin.name, phase, e)
                    raise PipelineHookError(plugin.name, phase, e) from e
