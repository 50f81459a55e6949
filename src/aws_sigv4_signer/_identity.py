# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass, replace
from datetime import datetime

from .interfaces.identity import AWSCredentialsIdentity


@dataclass(kw_only=True, frozen=True)
class NamedCredentials(AWSCredentialsIdentity):
    """An access key pair, optionally scoped to a temporary session."""

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None
    expiration: datetime | None = None

    def sanitized(self) -> "NamedCredentials":
        """Return a copy with surrounding whitespace stripped from every secret."""
        token = self.session_token
        return replace(
            self,
            access_key_id=self.access_key_id.strip(),
            secret_access_key=self.secret_access_key.strip(),
            session_token=token.strip() if token is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"NamedCredentials(access_key_id={self.access_key_id!r}, "
            f"expiration={self.expiration!r})"
        )


@dataclass(frozen=True)
class AnonymousCredentials:
    """The absence of credentials. Requests signed with these carry no signature."""


type Credentials = NamedCredentials | AnonymousCredentials
