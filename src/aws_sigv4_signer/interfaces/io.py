# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteStream(Protocol):
    """A file-like object with a read method that returns bytes."""

    def read(self, size: int | None = -1, /) -> bytes: ...


@runtime_checkable
class Seekable(Protocol):
    """A file-like object with seek and tell implemented.

    Bodies of this shape can be hashed and rewound, so they can be signed more than
    once without buffering.
    """

    def seek(self, offset: int, whence: int = 0, /) -> int: ...

    def tell(self) -> int: ...
