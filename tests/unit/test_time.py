# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from datetime import UTC, datetime, timedelta, timezone

import pytest
from aws_sigv4_signer import format_date_stamp, format_timestamp
from aws_sigv4_signer._time import ensure_utc, utc_now
from freezegun import freeze_time


@pytest.mark.parametrize(
    "value,timestamp,date_stamp",
    [
        (datetime(1981, 2, 16, 6, 30, tzinfo=UTC), "19810216T063000Z", "19810216"),
        (datetime(1981, 2, 16, 6, 30), "19810216T063000Z", "19810216"),
        (
            datetime(2015, 8, 30, 12, 36, 0, 999999, tzinfo=UTC),
            "20150830T123600Z",
            "20150830",
        ),
        (
            datetime(1981, 2, 16, 1, 30, tzinfo=timezone(timedelta(hours=-5))),
            "19810216T063000Z",
            "19810216",
        ),
        (
            datetime(1981, 2, 17, 1, 0, tzinfo=timezone(timedelta(hours=2))),
            "19810216T230000Z",
            "19810216",
        ),
        (datetime(2001, 1, 2, 3, 4, 5, tzinfo=UTC), "20010102T030405Z", "20010102"),
    ],
)
def test_format(value: datetime, timestamp: str, date_stamp: str) -> None:
    assert format_timestamp(value) == timestamp
    assert format_date_stamp(value) == date_stamp


def test_ensure_utc() -> None:
    naive = datetime(2024, 1, 1, 12)
    assert ensure_utc(naive) == datetime(2024, 1, 1, 12, tzinfo=UTC)
    offset = datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=3)))
    assert ensure_utc(offset).tzinfo is UTC
    assert ensure_utc(offset).hour == 9


@freeze_time("2015-08-30 12:36:00")
def test_utc_now() -> None:
    now = utc_now()
    assert now.tzinfo is not None
    assert format_timestamp(now) == "20150830T123600Z"
