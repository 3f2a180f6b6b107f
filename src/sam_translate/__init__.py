"""sam-translate: Translator from AWS SAM templates to plain CloudFormation.

This package provides tools for:
- Loading SAM templates from YAML/JSON (including short-form intrinsic tags)
- Running the ordered plugin pipeline (globals, implicit APIs, policy
  templates, derived API definitions)
- Converting every AWS::Serverless::* resource to CloudFormation resources

Quick Start:
    >>> from sam_translate.models import load_template
    >>> from sam_translate.transform import SamTranslator
    >>>
    >>> template = load_template("template.yaml")
    >>> output = SamTranslator().transform(template)
    >>> sorted(output["Resources"])
    ['HelloFunction', 'HelloFunctionRole']

Modules:
    models: Template models, options and file loading
    core: Logical IDs, ARNs, regions and intrinsic functions
    policy: Policy template catalog and expander
    openapi: Derived OpenAPI definition generator
    plugins: Ordered before/after transformation hooks
    converters: Per-resource-kind converters
    transform: Translator entry point and conversion dispatcher
    validation: Error types and template checks
    cli: Command-line interface
"""

__version__ = "0.1.0"
