"""
API configuration module.

Provides configuration for the ROM library API client and the upload
pipeline. Open for extension through custom configurations.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
import ssl

import aiohttp


class Routes:
    """API routes relative to the configured base URL."""

    PLATFORMS_ACTIVE = 'platforms/active'
    ROMS_CHECK_DUPLICATE = 'roms/check-duplicate'
    ROMS_UPLOAD_MULTIPLE = 'roms/upload-multiple'


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Credentials are sent with ``aiohttp.BasicAuth`` rather than embedded in
    the proxy URL.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_request_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``ClientSession.request``."""
        if not self.url:
            return {}
        kwargs: Dict[str, Any] = {'proxy': self.url}
        if self.username:
            kwargs['proxy_auth'] = aiohttp.BasicAuth(self.username, self.password or '')
        return kwargs


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    ROM library servers often run on a LAN with self-signed certificates;
    either disable verification or point ``ca_file`` at the server's CA.
    """
    verify: bool = True
    ca_file: Optional[str] = None

    def to_aiohttp_ssl(self) -> Union[bool, ssl.SSLContext]:
        """Value for the connector's ``ssl`` argument."""
        if not self.verify:
            return False
        if self.ca_file:
            return ssl.create_default_context(cafile=self.ca_file)
        return True


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Uploads of large ROM batches can take a long time, so the total
    timeout is generous while connect timeouts stay short.
    """
    total: float = 3600.0
    connect: float = 30.0
    sock_read: float = 300.0
    sock_connect: float = 30.0

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes all configuration options for the ROM library API client.
    """
    # Server settings
    base_url: str = 'http://localhost:5000/api'

    # User agent
    user_agent: str = 'romup/1.0.0'

    # Sub-configurations
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    # Additional headers
    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Logging
    log_level: int = 20  # logging.INFO

    # Connection pool settings
    limit_per_host: int = 10
    limit: int = 100

    def __post_init__(self):
        self.base_url = self.base_url.rstrip('/')

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Create configuration with proxy."""
        return cls(
            proxy=ProxyConfig(url=proxy_url),
            **kwargs
        )

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False),
            **kwargs
        )

    def url_for(self, route: str) -> str:
        """Build an absolute URL for an API route."""
        return f"{self.base_url}/{route.lstrip('/')}"

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.to_aiohttp_ssl(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }


@dataclass
class PipelineConfig:
    """
    Upload pipeline configuration.

    Attributes:
        max_file_size: Largest accepted file in bytes (2 GiB)
        fallback_sample_size: Bytes taken from each end of a file for the
            fallback fingerprint
        max_concurrent_checks: Files hashed and checked for duplicates at once
        max_concurrent_batches: Batches uploading at once (None = all)
        chunk_size: Read size used when streaming files into an upload
    """
    max_file_size: int = 2 * 1024 * 1024 * 1024
    fallback_sample_size: int = 1024
    max_concurrent_checks: int = 8
    max_concurrent_batches: Optional[int] = None
    chunk_size: int = 64 * 1024

    def __post_init__(self):
        if self.max_file_size <= 0:
            raise ValueError("max_file_size must be positive")
        if self.max_concurrent_checks < 1:
            raise ValueError("max_concurrent_checks must be at least 1")
        if self.max_concurrent_batches is not None and self.max_concurrent_batches < 1:
            raise ValueError("max_concurrent_batches must be at least 1")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
