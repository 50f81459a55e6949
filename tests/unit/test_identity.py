# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from datetime import UTC, datetime, timedelta

import pytest
from aws_sigv4_signer import AnonymousCredentials, NamedCredentials
from aws_sigv4_signer.interfaces.identity import AWSCredentialsIdentity


@pytest.mark.parametrize(
    "access_key_id,secret_access_key,session_token,expiration",
    [
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            None,
            None,
        ),
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            "SESS_TOKEN_1234",
            None,
        ),
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            "SESS_TOKEN_1234",
            datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC),
        ),
    ],
)
def test_named_credentials(
    access_key_id: str,
    secret_access_key: str,
    session_token: str | None,
    expiration: datetime | None,
) -> None:
    creds = NamedCredentials(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
        expiration=expiration,
    )
    assert isinstance(creds, AWSCredentialsIdentity)
    assert creds.access_key_id == access_key_id
    assert creds.secret_access_key == secret_access_key
    assert creds.session_token == session_token
    assert creds.expiration == expiration


@pytest.mark.parametrize(
    "expiration,is_expired",
    [
        (None, False),
        (datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC), True),
        (datetime.now(UTC) + timedelta(hours=1), False),
        (datetime(2024, 5, 1, 0, 0, 0), True),
        (datetime(2999, 1, 1, 0, 0, 0), False),
    ],
)
def test_named_credentials_expired(
    expiration: datetime | None, is_expired: bool
) -> None:
    creds = NamedCredentials(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        expiration=expiration,
    )
    assert creds.is_expired is is_expired


def test_sanitized_strips_whitespace() -> None:
    creds = NamedCredentials(
        access_key_id=" AKID1234EXAMPLE ",
        secret_access_key="SECRET1234\n",
        session_token="\tSESS_TOKEN_1234",
    )
    sanitized = creds.sanitized()
    assert sanitized.access_key_id == "AKID1234EXAMPLE"
    assert sanitized.secret_access_key == "SECRET1234"
    assert sanitized.session_token == "SESS_TOKEN_1234"
    assert creds.access_key_id == " AKID1234EXAMPLE "


def test_repr_hides_secrets() -> None:
    creds = NamedCredentials(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        session_token="SESS_TOKEN_1234",
    )
    assert "AKID1234EXAMPLE" in repr(creds)
    assert "SECRET1234" not in repr(creds)
    assert "SESS_TOKEN_1234" not in repr(creds)


def test_anonymous_credentials_are_not_named() -> None:
    assert not isinstance(AnonymousCredentials(), AWSCredentialsIdentity)
    assert AnonymousCredentials() == AnonymousCredentials()
