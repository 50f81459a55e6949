# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class SignerWarning(UserWarning): ...


class BaseSignerException(Exception):
    """Top-level exception to capture signing-related errors."""


class ConfigurationError(BaseSignerException, ValueError):
    """The request or signing properties can't produce a valid signature.

    Raised when no host can be derived for the request, or when a signing property
    is missing or out of range.
    """


class UnsupportedInputError(BaseSignerException, TypeError):
    """The request body could not be read or hashed."""


class ExpiredCredentialsError(BaseSignerException, ValueError):
    """The supplied credentials are past their expiration."""
