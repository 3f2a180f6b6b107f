"""Building blocks shared by plugins and converters.

Primary Entry Points:
    LogicalIdGenerator: deterministic, optionally content-hashed logical IDs
    IDVerifier: logical ID validity and uniqueness checks
    ArnBuilder / Arn: partition-aware ARN construction and parsing
    partition_for_region: region code to partition lookup
"""

from sam_translate.core.arn import (
    Arn,
    ArnBuilder,
    is_valid_arn,
    parse_arn,
    replace_account,
    replace_partition,
    replace_region,
    verify_arn,
)
from sam_translate.core.intrinsics import (
    GetAtt,
    Ref,
    Sub,
    deep_copy,
    get_att,
    is_intrinsic,
    ref,
    sub,
)
from sam_translate.core.logical_id import (
    HASH_LENGTH,
    LOGICAL_ID_MAX_LENGTH,
    IDVerifier,
    LogicalIdGenerator,
    is_valid_logical_id,
    make_logical_id_safe,
)
from sam_translate.core.region import partition_for_region

__all__ = [
    "Arn",
    "ArnBuilder",
    "GetAtt",
    "HASH_LENGTH",
    "IDVerifier",
    "LOGICAL_ID_MAX_LENGTH",
    "LogicalIdGenerator",
    "Ref",
    "Sub",
    "deep_copy",
    "get_att",
    "is_intrinsic",
    "is_valid_arn",
    "is_valid_logical_id",
    "make_logical_id_safe",
    "parse_arn",
    "partition_for_region",
    "ref",
    "replace_account",
    "replace_partition",
    "replace_region",
    "sub",
    "verify_arn",
]
