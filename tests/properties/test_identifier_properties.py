"""Property-based tests for storage keys, identifiers and version tags."""

from datetime import UTC, datetime

import pytest
from hypothesis import given, strategies as st

from specvault.exceptions import ValidationError
from specvault.storage import validate_key
from specvault.versions import (
    is_semver_tag,
    next_timestamp_tag,
    validate_api_id,
    validate_version_tag,
)

# =============================================================================
# Strategies
# =============================================================================

safe_segment = st.text(
    alphabet=st.characters(whitelist_categories=["L", "N"], whitelist_characters="-_"),
    min_size=1,
    max_size=12,
)
safe_key = st.lists(safe_segment, min_size=1, max_size=4).map("/".join)

separator = st.sampled_from(["/", "\\"])

slug = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-", min_size=1)

version_number = st.integers(min_value=0, max_value=10_000)


# =============================================================================
# Storage keys
# =============================================================================


@given(key=safe_key)
def test_safe_keys_are_accepted(key: str) -> None:
    """Property: keys built from plain segments always validate."""
    validate_key(key)


@given(
    before=st.lists(safe_segment, max_size=3),
    after=st.lists(safe_segment, max_size=3),
    sep=separator,
)
def test_parent_segments_are_rejected(
    before: list[str], after: list[str], sep: str
) -> None:
    """Property: a '..' segment anywhere, under either separator, is rejected."""
    key = sep.join([*before, "..", *after])

    with pytest.raises(ValidationError):
        validate_key(key)


@given(key=safe_key, sep=separator)
def test_absolute_keys_are_rejected(key: str, sep: str) -> None:
    """Property: a leading separator makes a key absolute and invalid."""
    with pytest.raises(ValidationError):
        validate_key(sep + key)


# =============================================================================
# Identifiers and tags
# =============================================================================


@given(api_id=slug)
def test_slugs_are_valid_api_ids(api_id: str) -> None:
    """Property: lowercase letters, digits and hyphens always validate."""
    assert validate_api_id(api_id) == api_id


@given(major=version_number, minor=version_number, patch=version_number)
def test_semver_tags_validate(major: int, minor: int, patch: int) -> None:
    """Property: every vMAJOR.MINOR.PATCH tag is a valid semantic tag."""
    tag = f"v{major}.{minor}.{patch}"

    assert validate_version_tag(tag) == tag
    assert is_semver_tag(tag)


@given(moment=st.datetimes(min_value=datetime(1000, 1, 1), timezones=st.just(UTC)))
def test_timestamp_tags_validate(moment: datetime) -> None:
    """Property: generated timestamp tags validate and are not semantic."""
    tag = next_timestamp_tag(moment)

    assert validate_version_tag(tag) == tag
    assert not is_semver_tag(tag)
