"""SAM to CloudFormation transformation module.

This module turns a parsed SAM template into a plain CloudFormation template.

The transformation process:
    1. Check the overall template shape
    2. Run the plugin pipeline (globals, policy templates, implicit APIs,
       derived API definitions)
    3. Pass through non-serverless resources
    4. Convert each serverless kind in turn, connectors last
    5. Assemble the output template and run the after-transform hooks

Primary Class:
    SamTranslator: Main translator class

Example:
-------
    >>> from sam_translate.models import load_template
    >>> from sam_translate.transform import SamTranslator
    >>>
    >>> template = load_template("template.yaml")
    >>> output = SamTranslator().transform(template)
    >>>
    >>> # Inspect generated resources
    >>> print(sorted(output["Resources"]))


"""

from sam_translate.transform.dispatcher import ConversionDispatcher, rename_references
from sam_translate.transform.translator import SamTranslator, build_output, check_template_shape

__all__ = [
    "ConversionDispatcher",
    "SamTranslator",
    "build_output",
    "check_template_shape",
    "rename_references",
]
