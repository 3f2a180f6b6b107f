"""Template plugins and the pipeline that runs them.

Default plugins, in execution order:
    GlobalsPlugin (100): merge ``Globals`` into resources
    ImplicitRestApiPlugin (300): create ``ServerlessRestApi``
    ImplicitHttpApiPlugin (310): create ``ServerlessHttpApi``
    PolicyTemplatesPlugin (400): expand policy templates
    DefinitionBodyPlugin (500): derive API definitions from routes
"""

from __future__ import annotations

from sam_translate.plugins.base import AFTER_TRANSFORM, BEFORE_TRANSFORM, Plugin, PluginPipeline
from sam_translate.plugins.definition_body import DefinitionBodyPlugin
from sam_translate.plugins.globals import GlobalsPlugin, merge_properties
from sam_translate.plugins.implicit_api import ImplicitHttpApiPlugin, ImplicitRestApiPlugin
from sam_translate.plugins.policy_templates import PolicyTemplatesPlugin
from sam_translate.policy.processor import PolicyTemplateProcessor


def default_pipeline(processor: PolicyTemplateProcessor | None = None) -> PluginPipeline:
    """Build the pipeline with every default plugin registered."""
    return PluginPipeline(
        [
            GlobalsPlugin(),
            ImplicitRestApiPlugin(),
            ImplicitHttpApiPlugin(),
            PolicyTemplatesPlugin(processor),
            DefinitionBodyPlugin(),
        ]
    )


__all__ = [
    "AFTER_TRANSFORM",
    "BEFORE_TRANSFORM",
    "DefinitionBodyPlugin",
    "GlobalsPlugin",
    "ImplicitHttpApiPlugin",
    "ImplicitRestApiPlugin",
    "Plugin",
    "PluginPipeline",
    "PolicyTemplatesPlugin",
    "default_pipeline",
    "merge_properties",
]
