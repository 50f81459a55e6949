# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import io
import logging
import warnings
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from functools import partial
from hashlib import sha256
from typing import Required, TypedDict
from urllib.parse import parse_qsl, quote, urlencode

from ._http import URI, Field, HTTPRequest
from ._identity import AnonymousCredentials, Credentials, NamedCredentials
from ._time import ensure_utc, format_date_stamp, format_timestamp, utc_now
from .exceptions import (
    ConfigurationError,
    ExpiredCredentialsError,
    SignerWarning,
    UnsupportedInputError,
)
from .interfaces.io import ByteStream, Seekable

_LOGGER = logging.getLogger(__name__)

SIGNED_HEADER_NAMES: tuple[str, ...] = ("host", "content-md5")
SIGNED_HEADER_PREFIX: str = "x-amz"
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

ALGORITHM: str = "AWS4-HMAC-SHA256"
SCOPE_TERMINATOR: str = "aws4_request"
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

CONTENT_SHA256_HEADER: str = "X-Amz-Content-SHA256"
# Placeholder value asking the signer to fill in the computed payload hash.
CONTENT_SHA256_REQUIRED: str = "required"

DEFAULT_PRESIGN_EXPIRES: int = 3600
MAX_PRESIGN_EXPIRES: int = 604800

_READ_CHUNK_SIZE = 64 * 1024


class SigV4SigningProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: datetime
    double_url_encode: bool
    payload_signing_enabled: bool
    content_checksum_enabled: bool
    time_offset: int
    expires: int


@dataclass(kw_only=True, frozen=True)
class SigningContext:
    """Everything a single signing call is scoped to."""

    region: str
    service: str
    timestamp: datetime
    double_url_encode: bool = True
    payload_signing_enabled: bool = True
    content_checksum_enabled: bool = False

    @property
    def amz_date(self) -> str:
        return format_timestamp(self.timestamp)

    @property
    def date_stamp(self) -> str:
        return format_date_stamp(self.timestamp)

    @property
    def scope(self) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{self.date_stamp}/{self.region}/{self.service}/{SCOPE_TERMINATOR}"


@dataclass(kw_only=True, frozen=True)
class CanonicalRequest:
    """The normalized form of a request that a SigV4 signature covers.

    ``fields`` maps lower-cased header names to their canonical values and is kept
    in sorted order.
    """

    method: str
    path: str
    query: str
    fields: dict[str, str]
    payload_hash: str

    @property
    def signed_headers(self) -> list[str]:
        return list(self.fields)

    def as_string(self) -> str:
        """Render the canonical request.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>
        """
        canonical_fields = "".join(
            f"{name}:{value}\n" for name, value in self.fields.items()
        )
        return (
            f"{self.method}\n"
            f"{self.path}\n"
            f"{self.query}\n"
            f"{canonical_fields}\n"
            f"{';'.join(self.fields)}\n"
            f"{self.payload_hash}"
        )

    def hexdigest(self) -> str:
        return sha256(self.as_string().encode()).hexdigest()


def needs_sign(field_name: str) -> bool:
    """Whether a header with the given name is covered by the signature."""
    name = field_name.lower()
    return name in SIGNED_HEADER_NAMES or name.startswith(SIGNED_HEADER_PREFIX)


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm.

    The signer only holds configuration. Every value derived while signing lives
    for the duration of one call, so a single instance can be shared between
    threads signing different requests.

    :param double_url_encode: Whether the canonical path encodes the already
        percent-encoded request path a second time. Services such as S3 expect
        single encoding and should set this to ``False``.
    :param clock: Source of the signing instant when the signing properties don't
        carry an explicit ``date``.
    """

    def __init__(
        self,
        *,
        double_url_encode: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.double_url_encode = double_url_encode
        self._clock = clock

    def sign(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        request: HTTPRequest,
        credentials: Credentials,
    ) -> None:
        """Generate a SigV4 signature and apply it to the supplied request in place.

        ``Host`` is added when missing and ``X-Amz-Date`` is always written. With
        :py:class:`AnonymousCredentials` no ``Authorization`` header is produced.

        :param signing_properties: SigV4SigningProperties to define signing primitives
            such as the target service, region, and date.
        :param request: An HTTPRequest to sign prior to sending to the service.
        :param credentials: The credentials to sign with.
        """
        identity = self._resolve_identity(credentials=credentials)
        context = self.signing_context(signing_properties=signing_properties)
        self._apply_required_fields(request=request, context=context, identity=identity)
        if identity is None:
            _LOGGER.debug("Anonymous credentials supplied, skipping request signing.")
            return

        payload_hash = self.payload_hash(request=request, context=context)
        canonical_request = self.canonical_request(
            request=request, context=context, payload_hash=payload_hash
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, context=context
        )
        signing_key = self.signing_key(
            secret_key=identity.secret_access_key, context=context
        )
        signature = self.signature(
            string_to_sign=string_to_sign, signing_key=signing_key
        )

        authorization = self.generate_authorization_field(
            credential=f"{identity.access_key_id}/{context.scope}",
            signed_headers=canonical_request.signed_headers,
            signature=signature,
        )
        request.fields.set_field(authorization)

    def presign(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        request: HTTPRequest,
        credentials: Credentials,
    ) -> None:
        """Move the SigV4 signature into the query string of the request.

        The resulting ``request.destination.build()`` is a URL that can be shared and
        used until ``signing_properties["expires"]`` seconds have passed. The payload
        is never hashed. Anonymous credentials leave the request untouched.
        """
        expires = signing_properties.get("expires", DEFAULT_PRESIGN_EXPIRES)
        if not 0 < expires <= MAX_PRESIGN_EXPIRES:
            raise ConfigurationError(
                "Presigned request expiration must be between 1 and "
                f"{MAX_PRESIGN_EXPIRES} seconds, got {expires}."
            )
        identity = self._resolve_identity(credentials=credentials)
        if identity is None:
            _LOGGER.debug("Anonymous credentials supplied, skipping presigning.")
            return

        context = self.signing_context(signing_properties=signing_properties)
        self._apply_host_field(request=request)
        signed_headers = self._normalize_signing_fields(request=request)
        auth_params = {
            "X-Amz-Algorithm": ALGORITHM,
            "X-Amz-Credential": f"{identity.access_key_id}/{context.scope}",
            "X-Amz-Date": context.amz_date,
            "X-Amz-Expires": str(expires),
            "X-Amz-SignedHeaders": ";".join(signed_headers),
        }
        if identity.session_token is not None:
            auth_params["X-Amz-Security-Token"] = identity.session_token
        self._extend_query(request=request, params=auth_params)

        canonical_request = self.canonical_request(
            request=request, context=context, payload_hash=UNSIGNED_PAYLOAD
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, context=context
        )
        signing_key = self.signing_key(
            secret_key=identity.secret_access_key, context=context
        )
        signature = self.signature(
            string_to_sign=string_to_sign, signing_key=signing_key
        )
        self._extend_query(request=request, params={"X-Amz-Signature": signature})

    def signing_context(
        self, *, signing_properties: SigV4SigningProperties
    ) -> SigningContext:
        """Resolve the per-call signing scope from the supplied properties.

        An explicit ``date`` wins over the signer's clock. ``time_offset`` only
        adjusts the clock, shifting the instant back by that many seconds.
        """
        for key in ("region", "service"):
            if not signing_properties.get(key):
                raise ConfigurationError(
                    f"Signing properties must include a non-empty {key!r}. "
                    f"Current value: {signing_properties.get(key)!r}"
                )

        if (date := signing_properties.get("date")) is not None:
            timestamp = ensure_utc(date)
        else:
            offset = signing_properties.get("time_offset", 0)
            timestamp = ensure_utc(self._clock()) - timedelta(seconds=offset)

        return SigningContext(
            region=signing_properties["region"],
            service=signing_properties["service"],
            timestamp=timestamp,
            double_url_encode=signing_properties.get(
                "double_url_encode", self.double_url_encode
            ),
            payload_signing_enabled=signing_properties.get(
                "payload_signing_enabled", True
            ),
            content_checksum_enabled=signing_properties.get(
                "content_checksum_enabled", False
            ),
        )

    def generate_authorization_field(
        self, *, credential: str, signed_headers: list[str], signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/aws4_request
        :param signed_headers:
            A list of the field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        signed_headers_str = ";".join(signed_headers)
        auth_str = (
            f"{ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers_str}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def canonical_request(
        self,
        *,
        request: HTTPRequest,
        context: SigningContext,
        payload_hash: str,
    ) -> CanonicalRequest:
        """Build the canonical request for the current state of ``request``.

        This is useful to quickly compare inputs to find signature mismatches and
        unintended variances. ``request`` is not modified; a missing ``Host`` is
        synthesized from the destination for canonicalization only.

        :param request:
            An HTTPRequest to use for generating a SigV4 signature.
        :param context:
            The SigningContext the signature will be scoped to.
        :param payload_hash:
            Hex SHA-256 of the body, or ``UNSIGNED-PAYLOAD``.
        """
        canonical_request = CanonicalRequest(
            method=request.method.upper(),
            path=self._format_canonical_path(
                path=request.destination.path,
                double_url_encode=context.double_url_encode,
            ),
            query=self._format_canonical_query(query=request.destination.query),
            fields=self._normalize_signing_fields(request=request),
            payload_hash=payload_hash,
        )
        _LOGGER.debug("Canonical request:\n%s", canonical_request.as_string())
        return canonical_request

    def string_to_sign(
        self,
        *,
        canonical_request: CanonicalRequest,
        context: SigningContext,
    ) -> str:
        """The string to sign concatenates the formal identifier of our signing
        algorithm, the signing DateTime, the scope of our credentials, and a hash of
        our previously generated canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest
        """
        string_to_sign = (
            f"{ALGORITHM}\n"
            f"{context.amz_date}\n"
            f"{context.scope}\n"
            f"{canonical_request.hexdigest()}"
        )
        _LOGGER.debug("String to sign:\n%s", string_to_sign)
        return string_to_sign

    def signing_key(self, *, secret_key: str, context: SigningContext) -> bytes:
        """Derive the signing key scoped to the context's date, region and service.

        The key is rebuilt on every call and never cached.
        """
        # Components of Signing Key Calculation
        #
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        k_date = self._hash(key=f"AWS4{secret_key}".encode(), value=context.date_stamp)
        k_region = self._hash(key=k_date, value=context.region)
        k_service = self._hash(key=k_region, value=context.service)
        return self._hash(key=k_service, value=SCOPE_TERMINATOR)

    def signature(self, *, string_to_sign: str, signing_key: bytes) -> str:
        return self._hash(key=signing_key, value=string_to_sign).hex()

    def payload_hash(self, *, request: HTTPRequest, context: SigningContext) -> str:
        """Determine the hashed payload for the request.

        A single caller-supplied ``X-Amz-Content-SHA256`` value is trusted as is,
        unless it is the ``required`` placeholder, in which case it is replaced with
        the computed hash.
        """
        supplied = request.fields.get(CONTENT_SHA256_HEADER)
        if (
            supplied is not None
            and len(supplied.values) == 1
            and supplied.values[0] != CONTENT_SHA256_REQUIRED
        ):
            return supplied.values[0]

        payload_hash = self._compute_payload_hash(request=request, context=context)
        if supplied is not None or context.content_checksum_enabled:
            request.fields.set_field(
                Field(name=CONTENT_SHA256_HEADER, values=[payload_hash])
            )
        return payload_hash

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()

    def _resolve_identity(
        self, *, credentials: Credentials
    ) -> NamedCredentials | None:
        """Perform runtime and expiration checks before attempting signing."""
        match credentials:
            case AnonymousCredentials():
                return None
            case NamedCredentials():
                if credentials.is_expired:
                    raise ExpiredCredentialsError(
                        f"Provided credentials expired at {credentials.expiration}. "
                        "Please refresh the credentials or update the expiration "
                        "parameter."
                    )
                return credentials.sanitized()
            case _:
                raise ConfigurationError(
                    "Received unexpected value for credentials. Expected "
                    f"NamedCredentials or AnonymousCredentials but received "
                    f"{type(credentials)}."
                )

    def _apply_required_fields(
        self,
        *,
        request: HTTPRequest,
        context: SigningContext,
        identity: NamedCredentials | None,
    ) -> None:
        self._apply_host_field(request=request)
        request.fields.set_field(Field(name="X-Amz-Date", values=[context.amz_date]))
        # Apply required X-Amz-Security-Token if token present on identity
        if identity is not None and identity.session_token is not None:
            request.fields.set_field(
                Field(name="X-Amz-Security-Token", values=[identity.session_token])
            )

    def _apply_host_field(self, *, request: HTTPRequest) -> None:
        # A caller-supplied Host takes precedence over the destination.
        if "Host" not in request.fields:
            request.fields.set_field(
                Field(
                    name="Host",
                    values=[self._normalize_host_field(uri=request.destination)],
                )
            )

    def _normalize_host_field(self, *, uri: URI) -> str:
        if not uri.host:
            raise ConfigurationError(
                "Unable to derive a Host header: the request destination has no host."
            )
        if uri.port is None or DEFAULT_PORTS.get(uri.scheme) == uri.port:
            return uri.host
        return f"{uri.host}:{uri.port}"

    def _format_canonical_path(
        self, *, path: str | None, double_url_encode: bool
    ) -> str:
        if not path:
            return "/"
        if not path.startswith("/"):
            path = f"/{path}"

        normalized_path = _remove_dot_segments(path)
        if double_url_encode:
            # Existing escapes are encoded again, turning "%2F" into "%252F".
            return quote(string=normalized_path, safe="/")
        return quote(string=normalized_path, safe="/%")

    def _format_canonical_query(self, *, query: str | None) -> str:
        if not query:
            return ""

        query_params = parse_qsl(qs=query, keep_blank_values=True)
        query_parts = (
            (quote(string=key, safe=""), quote(string=value, safe=""))
            for key, value in query_params
        )
        # key-value pairs must be in sorted order for their encoded forms.
        return "&".join(f"{key}={value}" for key, value in sorted(query_parts))

    def _normalize_signing_fields(self, *, request: HTTPRequest) -> dict[str, str]:
        normalized_fields = {
            field.name.lower(): " ".join(",".join(field.values).split())
            for field in request.fields
            if needs_sign(field.name)
        }
        if "host" not in normalized_fields:
            normalized_fields["host"] = self._normalize_host_field(
                uri=request.destination
            )

        return dict(sorted(normalized_fields.items()))

    def _extend_query(self, *, request: HTTPRequest, params: dict[str, str]) -> None:
        destination = request.destination
        encoded = urlencode(params, quote_via=quote)
        query = f"{destination.query}&{encoded}" if destination.query else encoded
        request.destination = replace(destination, query=query)

    def _compute_payload_hash(
        self, *, request: HTTPRequest, context: SigningContext
    ) -> str:
        # All insecure connections should be signed
        if (
            request.destination.scheme == "https"
            and not context.payload_signing_enabled
        ):
            return UNSIGNED_PAYLOAD

        body = request.body
        if body is None:
            return EMPTY_SHA256_HASH

        if isinstance(body, bytes | bytearray):
            return sha256(body).hexdigest()

        if isinstance(body, str) or not isinstance(body, Iterable):
            raise UnsupportedInputError(
                f"Unable to hash a request body of type {type(body)}. Please supply "
                "bytes or an Iterable[bytes]."
            )

        try:
            return self._hash_body_stream(request=request, body=body)
        except (OSError, TypeError, ValueError) as e:
            raise UnsupportedInputError(f"Failed to read the request body: {e}") from e

    def _hash_body_stream(self, *, request: HTTPRequest, body: Iterable[bytes]) -> str:
        checksum = sha256()
        if isinstance(body, Seekable):
            position = body.tell()
            for chunk in _iter_chunks(body):
                checksum.update(chunk)
            body.seek(position)
            return checksum.hexdigest()

        # The body can only be consumed once, so keep a copy to send.
        warnings.warn(
            "The request body is not seekable and will be buffered in memory "
            "so it can be sent after signing.",
            SignerWarning,
        )
        buffer = io.BytesIO()
        for chunk in _iter_chunks(body):
            buffer.write(chunk)
            checksum.update(chunk)
        buffer.seek(0)
        request.body = buffer
        return checksum.hexdigest()


def _iter_chunks(body: Iterable[bytes]) -> Iterator[bytes]:
    if isinstance(body, ByteStream):
        return iter(partial(body.read, _READ_CHUNK_SIZE), b"")
    return iter(body)


def _remove_dot_segments(path: str) -> str:
    """Removes dot segments from a path per :rfc:`3986#section-5.2.4`.

    Consecutive slashes are collapsed as well.

    :param path: The path to modify.
    :returns: The path with dot segments removed.
    """
    output: list[str] = []
    for segment in path.split("/"):
        if segment == ".":
            continue
        elif segment != "..":
            output.append(segment)
        elif output:
            output.pop()
    if path.startswith("/") and (not output or output[0]):
        output.insert(0, "")
    if output and path.endswith(("/.", "/..")):
        output.append("")
    return "/".join(output).replace("//", "/")
