import hashlib
import hmac
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol
from urllib.parse import quote

import httpx

from apps.common.exceptions import LinkGenerationError

# S3 rejects presigned URLs valid for longer than a week
MAX_PRESIGN_EXPIRY = timedelta(days=7)


class ObjectStorageClient(Protocol):
    def presign(self, method: str, bucket: str, key: str, expires: timedelta) -> str:
        ...


def _uri_encode(value: str, safe: str = '-_.~') -> str:
    return quote(value, safe=safe)


class LocalStorage:
    """Filesystem addressing used instead of presigned URLs outside production."""

    def __init__(self, base_path: str):
        self.base_path = base_path

    def path_for(self, filename: str) -> str:
        return f"{self.base_path.rstrip('/')}/{filename}"


class S3HTTPStorage:

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        region: str | None = None,
        virtual_host: bool = False,
        session_token: str | None = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.endpoint = endpoint.rstrip('/')
        self.access_key = access_key
        self.secret_key = secret_key
        self.session_token = session_token
        self.service = "s3"
        self.virtual_host = virtual_host
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.region = region or self._extract_region(self.endpoint)

    def _extract_region(self, endpoint: str) -> str:
        """Auto-detect region from endpoint URL"""
        patterns = [
            r's3[.-]([a-z0-9-]+)\.amazonaws\.com',
            r'([a-z0-9-]+)\.digitaloceanspaces\.com',
            r'([a-z0-9-]+)\.linodeobjects\.com',
            r's3\.([a-z0-9-]+)\.backblazeb2\.com',
            r's3\.([a-z0-9-]+)\.wasabisys\.com',
        ]
        for p in patterns:
            match = re.search(p, endpoint)
            if match:
                return match.group(1)

        # MinIO and generic S3 services commonly use "us-east-1"
        return "us-east-1"

    def _sign(self, key: bytes, msg: str) -> bytes:
        return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()

    def _get_signature_key(self, date_stamp: str) -> bytes:
        k_date = self._sign(f"AWS4{self.secret_key}".encode('utf-8'), date_stamp)
        k_region = self._sign(k_date, self.region)
        k_service = self._sign(k_region, self.service)
        return self._sign(k_service, 'aws4_request')

    def _make_url_and_path(self, bucket: str, key: str):
        """
        Supports both:
            - path-style:       https://endpoint/bucket/key
            - virtual-host:     https://bucket.endpoint/key
        """
        key = _uri_encode(key, safe='/-_.~')
        if self.virtual_host:
            url = f"{self.endpoint.replace('//', f'//{bucket}.', 1)}/{key}"
            path = f"/{key}"
        else:
            url = f"{self.endpoint}/{bucket}/{key}"
            path = f"/{bucket}/{key}"

        return url, path

    def presign(self, method: str, bucket: str, key: str, expires: timedelta) -> str:
        """Return a SigV4 query-string presigned URL for ``method`` on ``bucket/key``.

        Only the host header is signed and the payload is left unsigned, so the
        holder of the URL may GET or PUT any body until it expires.
        """
        method = method.upper()
        if method not in ('GET', 'PUT'):
            raise LinkGenerationError(f"Unsupported presign method: {method}")
        if not self.access_key or not self.secret_key:
            raise LinkGenerationError("S3 credentials are not configured")
        if not bucket:
            raise LinkGenerationError("S3 bucket is not configured")
        expires_in = int(expires.total_seconds())
        if expires_in < 1 or expires > MAX_PRESIGN_EXPIRY:
            raise LinkGenerationError(f"Invalid presign expiry: {expires_in}s")

        url, path = self._make_url_and_path(bucket, key)
        try:
            host = httpx.URL(url).netloc.decode('ascii')
        except (httpx.InvalidURL, UnicodeDecodeError) as e:
            raise LinkGenerationError(f"Invalid S3 endpoint: {self.endpoint}") from e

        now = self.clock()
        amz_date = now.strftime('%Y%m%dT%H%M%SZ')
        date_stamp = now.strftime('%Y%m%d')
        credential_scope = f"{date_stamp}/{self.region}/{self.service}/aws4_request"

        params = {
            "X-Amz-Algorithm": "AWS4-HMAC-SHA256",
            "X-Amz-Credential": f"{self.access_key}/{credential_scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(expires_in),
            "X-Amz-SignedHeaders": "host",
        }
        if self.session_token:
            params["X-Amz-Security-Token"] = self.session_token
        canonical_query = "&".join(
            f"{_uri_encode(k)}={_uri_encode(v)}" for k, v in sorted(params.items())
        )

        canonical_request = (
            f"{method}\n"
            f"{path}\n"
            f"{canonical_query}\n"
            f"host:{host}\n"
            f"\n"
            f"host\n"
            f"UNSIGNED-PAYLOAD"
        )

        string_to_sign = (
            f"AWS4-HMAC-SHA256\n"
            f"{amz_date}\n"
            f"{credential_scope}\n"
            f"{hashlib.sha256(canonical_request.encode()).hexdigest()}"
        )

        signature = hmac.new(
            self._get_signature_key(date_stamp),
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

        return f"{url}?{canonical_query}&X-Amz-Signature={signature}"
