"""Policy templates: named, parameterized IAM policy fragments.

Primary Class:
    PolicyTemplateProcessor: loads the catalog and expands template references
"""

from sam_translate.policy.processor import (
    PolicyTemplate,
    PolicyTemplateCatalog,
    PolicyTemplateProcessor,
)

__all__ = ["PolicyTemplate", "PolicyTemplateCatalog", "PolicyTemplateProcessor"]
