# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_DATE_FORMAT: str = "%Y%m%d"


def utc_now() -> datetime:
    """Default signing clock."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Ensures that the given datetime is a UTC timezone-aware datetime.

    If the datetime isn't timezone-aware, its timezone is set to UTC. If it is aware,
    it's replaced with the equivalent datetime under UTC.

    :param value: A datetime object that may or may not be timezone-aware.
    :returns: A UTC timezone-aware equivalent datetime.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Format an instant as a SigV4 timestamp, e.g. ``19810216T063000Z``."""
    return ensure_utc(value).strftime(SIGV4_TIMESTAMP_FORMAT)


def format_date_stamp(value: datetime) -> str:
    """Format an instant as a SigV4 date stamp, e.g. ``19810216``."""
    return ensure_utc(value).strftime(SIGV4_DATE_FORMAT)
