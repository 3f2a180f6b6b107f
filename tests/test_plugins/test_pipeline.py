"""Tests for the plugin pipeline."""

from typing import Any

import pytest

from sam_translate.plugins import (
    DefinitionBodyPlugin,
    GlobalsPlugin,
    ImplicitHttpApiPlugin,
    ImplicitRestApiPlugin,
    Plugin,
    PluginPipeline,
    PolicyTemplatesPlugin,
    default_pipeline,
)
from sam_translate.validation.exceptions import PipelineHookError


class RecordingPlugin(Plugin):
    """Appends its name to the template on every hook."""

    def __init__(self, name: str, priority: int) -> None:
        self.name = name
        self.priority = priority

    def before_transform(self, template: dict[str, Any]) -> None:
        template.setdefault("calls", []).append(f"before:{self.name}")

    def after_transform(self, template: dict[str, Any]) -> None:
        template.setdefault("calls", []).append(f"after:{self.name}")


class FailingPlugin(Plugin):
    """Raises from its before hook."""

    name = "Failing"
    priority = 10

    def before_transform(self, template: dict[str, Any]) -> None:
        raise ValueError("boom")


class TestPluginPipeline:
    """Tests for PluginPipeline."""

    def test_runs_in_priority_order(self) -> None:
        """Should run lower priorities first, keeping registration order for ties."""
        pipeline = PluginPipeline(
            [RecordingPlugin("c", 300), RecordingPlugin("a", 100), RecordingPlugin("b", 100)]
        )
        template: dict[str, Any] = {}
        pipeline.run_before(template)
        pipeline.run_after(template)

        assert template["calls"] == [
            "before:a",
            "before:b",
            "before:c",
            "after:a",
            "after:b",
            "after:c",
        ]

    def test_hook_failure_aborts(self) -> None:
        """Should wrap the first failure and stop running hooks."""
        pipeline = PluginPipeline([FailingPlugin(), RecordingPlugin("later", 20)])
        template: dict[str, Any] = {}

        with pytest.raises(PipelineHookError) as exc_info:
            pipeline.run_before(template)

        assert exc_info.value.plugin == "Failing"
        assert exc_info.value.phase == "before_transform"
        assert "boom" in str(exc_info.value)
        assert "calls" not in template

    def test_default_hooks_are_no_ops(self) -> None:
        """Should leave the template alone when hooks are not overridden."""
        template = {"Resources": {}}
        PluginPipeline([Plugin()]).run_before(template)
        assert template == {"Resources": {}}

    def test_default_pipeline_order(self) -> None:
        """Should register the default plugins in their fixed order."""
        plugins = default_pipeline().plugins

        assert [type(p) for p in plugins] == [
            GlobalsPlugin,
            ImplicitRestApiPlugin,
            ImplicitHttpApiPlugin,
            PolicyTemplatesPlugin,
            DefinitionBodyPlugin,
        ]
        assert [p.priority for p in plugins] == [100, 300, 310, 400, 500]
