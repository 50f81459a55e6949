# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from .._time import ensure_utc


@runtime_checkable
class Identity(Protocol):
    """An entity available to the signer representing who the caller is."""

    expiration: datetime | None = None
    """The expiration time of the identity.

    A naive value is taken to be in UTC.
    """

    @property
    def is_expired(self) -> bool:
        """Whether the identity is expired."""
        if self.expiration is None:
            return False
        return datetime.now(tz=UTC) >= ensure_utc(self.expiration)


@runtime_checkable
class AWSCredentialsIdentity(Identity, Protocol):
    """A named AWS credential able to produce a SigV4 signature."""

    access_key_id: str
    """A unique identifier for an AWS user or role."""

    secret_access_key: str
    """A secret key used in conjunction with the access key ID to derive signing
    keys. It is never transmitted."""

    session_token: str | None = None
    """A temporary token used to specify the current session for the supplied
    credentials."""
