# src/magicgate/core/streaming.py
# Copyright 2026 Veritensor Security Apache 2.0
# Read collaborators: fetch the first N bytes of a local file, an in-memory
# buffer, a file object, an HTTP(S) URL or an S3 object.

import io
import os
import socket
import logging
import ipaddress
import requests
from urllib.parse import urlparse
from typing import Any, Optional

from magicgate.core.errors import ReadFailure

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def _is_private_address(ip: str) -> bool:
    addr = ipaddress.ip_address(ip)
    return addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_unspecified


class RemoteStream(io.IOBase):
    """
    A file-like object that reads data from a URL using HTTP Range headers.
    Only the requested byte range is transferred.
    """
    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        allow_private: bool = False,
    ):
        self.url = url
        self.timeout = timeout
        self.session = None
        self.pos = 0
        self._closed = False
        if not allow_private:
            self._validate_url(url)
        self.session = session or requests.Session()

    def _validate_url(self, url: str):
        """
        Prevents SSRF by checking protocol and resolving DNS to check IP.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise ReadFailure(url, f"Invalid scheme: {parsed.scheme}")

        hostname = parsed.hostname
        if not hostname:
            raise ReadFailure(url, "URL has no host")
        try:
            ip = socket.gethostbyname(hostname)
        except socket.gaierror:
            # DNS failure surfaces on the actual request
            return
        if _is_private_address(ip):
            raise ReadFailure(url, f"SSRF Protection: Access to private IP {ip} ({hostname}) is denied.")

    def read(self, size: int = -1) -> bytes:
        if self._closed:
            raise ValueError("I/O operation on closed file")
        if size is None or size < 0:
            raise ValueError("RemoteStream reads need an explicit size")
        if size == 0:
            return b""

        # HTTP Range header (0-indexed, inclusive)
        headers = {"Range": f"bytes={self.pos}-{self.pos + size - 1}"}
        logger.debug(f"Ranged GET {self.url} {headers['Range']}")

        try:
            resp = self.session.get(self.url, headers=headers, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise ReadFailure(self.url, f"Stream read error: {e}") from e

        try:
            if resp.status_code == 416:
                # Range starts past the end of the resource
                return b""
            if resp.status_code == 200 and self.pos > 0:
                raise ReadFailure(self.url, "Server ignored the Range header")
            if resp.status_code not in (200, 206):
                raise ReadFailure(self.url, f"HTTP {resp.status_code}")
            # A 200 means the server ignored Range; stop after `size` bytes
            content = _read_limited(resp, size)
        except requests.RequestException as e:
            raise ReadFailure(self.url, f"Stream read error: {e}") from e
        finally:
            resp.close()

        self.pos += len(content)
        return content

    def tell(self) -> int:
        return self.pos

    def readable(self) -> bool:
        return True

    def close(self):
        if not self._closed:
            self._closed = True
            if self.session is not None:
                self.session.close()
        super().close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def _read_limited(resp, size: int) -> bytes:
    buf = bytearray()
    for chunk in resp.iter_content(chunk_size=size):
        buf.extend(chunk)
        if len(buf) >= size:
            break
    return bytes(buf[:size])


class S3Stream(io.IOBase):
    """
    Reads from S3 using boto3 ranged GETs.
    Implemented only if 'magicgate[aws]' is installed.
    """
    def __init__(self, s3_path: str, timeout: float = DEFAULT_TIMEOUT):
        # Lazy import to avoid crashing if boto3 is missing
        try:
            import boto3
            from botocore.config import Config
            from botocore import UNSIGNED
        except ImportError as e:
            raise ReadFailure(
                s3_path,
                "AWS dependencies missing. Run: pip install magicgate[aws] to read s3:// URLs.",
            ) from e

        self.s3_path = s3_path
        parsed = urlparse(s3_path)
        self.bucket = parsed.netloc
        self.key = parsed.path.lstrip('/')
        if not self.bucket or not self.key:
            raise ReadFailure(s3_path, "S3 path must look like s3://bucket/key")

        # Anonymous access; credentials can be wired in through the default chain later
        self.s3_client = boto3.client(
            's3',
            config=Config(signature_version=UNSIGNED, connect_timeout=timeout, read_timeout=timeout),
        )
        self.pos = 0

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            raise ValueError("S3Stream reads need an explicit size")
        if size == 0:
            return b""

        range_header = f"bytes={self.pos}-{self.pos + size - 1}"
        try:
            resp = self.s3_client.get_object(Bucket=self.bucket, Key=self.key, Range=range_header)
            data = resp['Body'].read(size)
        except Exception as e:
            # botocore raises a wide family of ClientError/BotoCoreError types
            if "InvalidRange" in str(e):
                return b""
            raise ReadFailure(self.s3_path, f"S3 Read Error: {e}") from e

        self.pos += len(data)
        return data

    def tell(self) -> int:
        return self.pos

    def readable(self) -> bool:
        return True


def get_stream_for_path(path: str, timeout: float = DEFAULT_TIMEOUT):
    """
    Factory to get correct stream (S3, HTTP, or Local).
    """
    if path.startswith("s3://"):
        return S3Stream(path, timeout=timeout)
    elif path.startswith("http://") or path.startswith("https://"):
        return RemoteStream(path, timeout=timeout)
    else:
        try:
            return open(path, "rb")
        except OSError as e:
            raise ReadFailure(path, e.strerror or str(e)) from e


def read_prefix(resource: Any, n: int, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """
    Returns up to `n` bytes from the start of `resource`.
    Fewer bytes come back when the resource is shorter; nothing is padded.

    resource: bytes-like, a binary file object, a path, an http(s):// URL or s3:// URL.
    """
    if n <= 0:
        return b""

    if isinstance(resource, (bytes, bytearray, memoryview)):
        return bytes(resource[:n])

    if hasattr(resource, "read"):
        return _read_file_object(resource, n)

    if isinstance(resource, os.PathLike):
        resource = os.fspath(resource)
    if not isinstance(resource, str):
        raise ReadFailure(resource, f"Unsupported resource type: {type(resource).__name__}")

    stream = get_stream_for_path(resource, timeout=timeout)
    try:
        return _read_file_object(stream, n, rewind=False)
    finally:
        stream.close()


def _read_file_object(fobj, n: int, rewind: bool = True) -> bytes:
    """
    rewind=True is used for caller-supplied objects: seek to the start when
    possible, keep reading until `n` bytes or EOF (raw streams may return short reads),
    then put the stream back where the caller left it.
    """
    buf = bytearray()
    origin = None
    try:
        if rewind and hasattr(fobj, "seekable") and fobj.seekable():
            origin = fobj.tell()
            fobj.seek(0)
        while len(buf) < n:
            data = fobj.read(n - len(buf))
            if data is None:
                raise ReadFailure(fobj, "No data available from non-blocking stream")
            if isinstance(data, str):
                raise ReadFailure(fobj, "File object is opened in text mode; binary mode is required")
            if not data:
                break
            buf.extend(data)
            if not rewind:
                break
    except ReadFailure:
        raise
    except (OSError, ValueError) as e:
        raise ReadFailure(fobj, str(e)) from e
    finally:
        if origin is not None:
            fobj.seek(origin)
    return bytes(buf[:n])
