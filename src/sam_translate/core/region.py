"""Region to partition lookup."""

from __future__ import annotations

DEFAULT_REGION = "us-east-1"

PARTITION_AWS = "aws"
PARTITION_CHINA = "aws-cn"
PARTITION_GOV = "aws-us-gov"

VALID_PARTITIONS = frozenset({PARTITION_AWS, PARTITION_CHINA, PARTITION_GOV})

_PARTITION_PREFIXES = (
    ("cn-", PARTITION_CHINA),
    ("us-gov-", PARTITION_GOV),
)


def partition_for_region(region: str | None) -> str:
    """Return the partition a region belongs to.

    Args:
    ----
        region: Region code such as ``cn-north-1``. Empty means the default region.

    Returns:
    -------
        One of ``aws``, ``aws-cn`` or ``aws-us-gov``.

    """
    region = region or DEFAULT_REGION
    for prefix, partition in _PARTITION_PREFIXES:
        if region.startswith(prefix):
            return partition
    return PARTITION_AWS


def is_china_region(region: str) -> bool:
    return partition_for_region(region) == PARTITION_CHINA


def is_gov_region(region: str) -> bool:
    return partition_for_region(region) == PARTITION_GOV


def service_principal(service: str) -> str:
    """Service principal for IAM trust policies, e.g. ``lambda.amazonaws.com``."""
    return f"{service}.amazonaws.com"
