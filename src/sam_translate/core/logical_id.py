"""Deterministic logical ID generation and verification.

Generated IDs only ever contain ``[A-Za-z0-9]``, start with a letter and are
at most 255 characters long. Hashed IDs append the first eight hex digits of
a SHA-256 digest, so the same inputs always give the same ID and a change in
the hashed data changes the suffix.

Example:
-------
    >>> gen = LogicalIdGenerator()
    >>> gen.generate("My", "Function", "-Role")
    'MyFunctionRole'
    >>> gen.generate_hashed("s3://bucket/key", "MyLayer")[:7]
    'MyLayer'

"""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Mapping
from typing import Any

from sam_translate.validation.errors import ErrorCodes
from sam_translate.validation.exceptions import DuplicateOrInvalidIdentifierError

LOGICAL_ID_MAX_LENGTH = 255
HASH_LENGTH = 8
SAFE_PREFIX = "R"
RESERVED_PREFIXES = ("AWS", "Custom")

_LOGICAL_ID_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")
_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9]")


def sanitize_logical_id(value: str) -> str:
    """Strip non-alphanumerics and prepend ``R`` if the result starts with a digit."""
    cleaned = _UNSAFE_CHARACTERS.sub("", value)
    if cleaned and not cleaned[0].isalpha():
        cleaned = SAFE_PREFIX + cleaned
    return cleaned


def is_valid_logical_id(value: str) -> bool:
    return 0 < len(value) <= LOGICAL_ID_MAX_LENGTH and bool(_LOGICAL_ID_PATTERN.match(value))


def make_logical_id_safe(value: str) -> str:
    """Turn any string into a valid logical ID, truncating to the maximum length."""
    cleaned = sanitize_logical_id(value) or SAFE_PREFIX
    return cleaned[:LOGICAL_ID_MAX_LENGTH]


def hash_data(data: str | Mapping[str, Any] | None) -> str:
    """Short SHA-256 digest used as a logical ID suffix."""
    if data is None:
        data = ""
    if not isinstance(data, str):
        data = canonical_json(data)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def canonical_json(data: Any) -> str:
    """Serialize ``data`` deterministically (sorted keys, no whitespace)."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


class LogicalIdGenerator:
    """Produces deterministic logical IDs from name parts."""

    def __init__(self, prefix: str = "") -> None:
        """Initialize the generator.

        Args:
        ----
            prefix: Optional prefix prepended to every generated ID.

        """
        self.prefix = sanitize_logical_id(prefix)

    def generate(self, *parts: str) -> str:
        """Concatenate ``parts`` into a sanitized logical ID.

        The order of ``parts`` matters. The result leaves room for a hash
        suffix, so it is at most ``255 - 8`` characters long.
        """
        if not parts:
            return ""
        value = sanitize_logical_id("".join(parts))
        if self.prefix and value:
            value = self.prefix + value
        return value[: LOGICAL_ID_MAX_LENGTH - HASH_LENGTH]

    def generate_hashed(self, data: str | Mapping[str, Any] | None, *parts: str) -> str:
        """Generate an ID from ``parts`` with a content hash of ``data`` appended.

        Args:
        ----
            data: Content whose change should change the ID. Maps are
                serialized with sorted keys first.
            *parts: Name parts for the readable base.

        Returns:
        -------
            ``base + hash``, or ``""`` when both base and data are empty.

        """
        base = self.generate(*parts)
        if not base and not data:
            return ""
        suffix = hash_data(data)
        if not base:
            return suffix if suffix[0].isalpha() else SAFE_PREFIX + suffix
        return base[: LOGICAL_ID_MAX_LENGTH - HASH_LENGTH] + suffix

    def deployment_id(self, api_logical_id: str, spec_text: str) -> str:
        """ID of an API deployment; it changes if and only if ``spec_text`` changes."""
        return self.generate(api_logical_id + "Deployment") + hash_data(spec_text)

    def generate_from_map(self, prefix: str, data: Mapping[str, Any]) -> str:
        return self.generate_hashed(canonical_json(dict(data)) if data else "", prefix)


class IDVerifier:
    """Checks logical IDs for validity and uniqueness within one template."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def verify(self, logical_id: str) -> None:
        """Verify a single ID and remember it.

        Raises
        ------
            DuplicateOrInvalidIdentifierError: If the ID is invalid or already seen.

        """
        if not logical_id:
            raise DuplicateOrInvalidIdentifierError(logical_id, "logical ID cannot be empty")
        if len(logical_id) > LOGICAL_ID_MAX_LENGTH:
            raise DuplicateOrInvalidIdentifierError(
                logical_id,
                f"exceeds maximum length of {LOGICAL_ID_MAX_LENGTH} characters",
            )
        if not _LOGICAL_ID_PATTERN.match(logical_id):
            raise DuplicateOrInvalidIdentifierError(
                logical_id, "must be alphanumeric and start with a letter"
            )
        for prefix in RESERVED_PREFIXES:
            if logical_id.startswith(prefix):
                raise DuplicateOrInvalidIdentifierError(
                    logical_id,
                    f"uses reserved prefix '{prefix}'",
                    code=ErrorCodes.E102_RESERVED_PREFIX,
                )
        if logical_id in self._seen:
            raise DuplicateOrInvalidIdentifierError(
                logical_id,
                "duplicate logical ID detected",
                code=ErrorCodes.E100_DUPLICATE_LOGICAL_ID,
            )
        self._seen.add(logical_id)

    def verify_all(self, logical_ids: list[str]) -> None:
        for logical_id in logical_ids:
            self.verify(logical_id)

    def is_seen(self, logical_id: str) -> bool:
        return logical_id in self._seen

    def reset(self) -> None:
        self._seen.clear()
