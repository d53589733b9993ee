"""Document identifier and version tag validation.

Identifiers are lowercase slugs (``billing-api``). Version tags are either
semantic (``v1.2.3``) or timestamps (``v20240115-093000``).
"""

import re
from datetime import UTC, datetime
from typing import Final

from specvault.exceptions import ValidationError

API_ID_PATTERN: Final = re.compile(r"^[a-z0-9-]+$")
SEMVER_TAG_PATTERN: Final = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")
TIMESTAMP_TAG_PATTERN: Final = re.compile(r"^v\d{8}-\d{6}$")


def validate_api_id(api_id: str) -> str:
    """Return ``api_id`` unchanged if it is a valid document identifier.

    Raises:
        ValidationError: If the identifier is not a lowercase slug.
    """
    if not isinstance(api_id, str) or not API_ID_PATTERN.fullmatch(api_id):  # pyright: ignore[reportUnnecessaryIsInstance]
        msg = (
            f"Invalid API ID {api_id!r}: must contain only lowercase letters, "
            "digits and hyphens"
        )
        raise ValidationError(
            msg, field="api_id", value=api_id, expected="^[a-z0-9-]+$"
        )
    return api_id


def validate_version_tag(version: str) -> str:
    """Return ``version`` unchanged if it is a valid version tag.

    Raises:
        ValidationError: If the tag is neither ``vX.Y.Z`` nor
            ``vYYYYMMDD-HHMMSS``.
    """
    if not isinstance(version, str) or not (  # pyright: ignore[reportUnnecessaryIsInstance]
        SEMVER_TAG_PATTERN.fullmatch(version)
        or TIMESTAMP_TAG_PATTERN.fullmatch(version)
    ):
        msg = (
            f"Invalid version tag {version!r}: must be semantic (v1.2.3) "
            "or a timestamp (v20240115-093000)"
        )
        raise ValidationError(
            msg,
            field="version",
            value=version,
            expected="vMAJOR.MINOR.PATCH or vYYYYMMDD-HHMMSS",
        )
    return version


def is_semver_tag(version: str) -> bool:
    """Return whether ``version`` is a semantic version tag."""
    return SEMVER_TAG_PATTERN.fullmatch(version) is not None


def next_timestamp_tag(now: datetime | None = None) -> str:
    """Return a timestamp version tag for ``now`` (default: current UTC time).

    Example:
        >>> next_timestamp_tag(datetime(2024, 1, 15, 9, 30, tzinfo=UTC))
        'v20240115-093000'
    """
    moment = now or datetime.now(UTC)
    return moment.strftime("v%Y%m%d-%H%M%S")
