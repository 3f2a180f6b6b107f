"""Per-call translation options."""

from __future__ import annotations

import os
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sam_translate.core.arn import ArnBuilder
from sam_translate.core.region import DEFAULT_REGION, VALID_PARTITIONS, partition_for_region

DEFAULT_ACCOUNT_ID = "123456789012"
DEFAULT_STACK_NAME = "sam-app"


class TransformOptions(BaseModel):
    """Immutable options for one translation.

    The partition is derived from the region unless given explicitly.

    Example:
    -------
        >>> TransformOptions(region="cn-north-1").partition
        'aws-cn'

    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    region: Annotated[str, Field(min_length=1, description="Deployment region")] = DEFAULT_REGION
    account_id: Annotated[
        str, Field(pattern=r"^\d{12}$", description="Twelve-digit account ID")
    ] = DEFAULT_ACCOUNT_ID
    stack_name: Annotated[str, Field(min_length=1, description="Stack name")] = DEFAULT_STACK_NAME
    partition: Annotated[str, Field(description="Partition; derived from region if omitted")] = ""
    pass_through_metadata: Annotated[
        bool, Field(description="Copy resource Metadata onto generated resources")
    ] = True

    @model_validator(mode="before")
    @classmethod
    def _derive_partition(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("partition"):
            data = {**data, "partition": partition_for_region(data.get("region"))}
        return data

    @model_validator(mode="after")
    def _check_partition(self) -> TransformOptions:
        if self.partition not in VALID_PARTITIONS:
            raise ValueError(f"unknown partition '{self.partition}'")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> TransformOptions:
        """Build options from ``AWS_REGION`` / ``AWS_DEFAULT_REGION``, then apply overrides."""
        values: dict[str, Any] = {}
        region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
        if region:
            values["region"] = region
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def arn_builder(self) -> ArnBuilder:
        return ArnBuilder(self.region, self.account_id, self.partition)
