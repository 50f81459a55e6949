# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS SigV4 Signer provides stand-alone AWS Signature Version 4 request signing for
use with HTTP tools such as Curl, Requests, urllib3, etc."""

from __future__ import annotations

from ._http import URI, Field, Fields, HTTPRequest
from ._identity import AnonymousCredentials, Credentials, NamedCredentials
from ._time import format_date_stamp, format_timestamp
from .signers import (
    CanonicalRequest,
    SigningContext,
    SigV4Signer,
    SigV4SigningProperties,
    needs_sign,
)

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AnonymousCredentials",
    "CanonicalRequest",
    "Credentials",
    "Field",
    "Fields",
    "HTTPRequest",
    "NamedCredentials",
    "SigV4Signer",
    "SigV4SigningProperties",
    "SigningContext",
    "format_date_stamp",
    "format_timestamp",
    "needs_sign",
)
