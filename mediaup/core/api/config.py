"""
API configuration module.

Provides configuration for the asset store client and the upload pipeline.
Open for extension through custom configurations.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import ssl


@dataclass
class ProxyConfig:
    """
    Proxy configuration.
    
    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    
    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None
        
        if self.username and self.password:
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"
        
        return self.url


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True
    
    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False
        
        context = ssl.create_default_context()
        
        if self.ca_file:
            context.load_verify_locations(self.ca_file)
        
        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )
        
        context.check_hostname = self.check_hostname
        
        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.
    
    A request exceeding `total` is reported as a transient failure.
    """
    total: float = 60.0
    connect: float = 10.0
    sock_read: Optional[float] = None
    sock_connect: float = 10.0
    
    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class RetryConfig:
    """
    Retry configuration.
    
    Backoff is linear: the n-th retry waits base_delay * n seconds.
    """
    max_retries: int = 3
    base_delay: float = 1.0
    
    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay after the given zero-based failed attempt."""
        return self.base_delay * (attempt + 1)
    
    @property
    def max_attempts(self) -> int:
        """Total transmissions allowed (first attempt plus retries)."""
        return self.max_retries + 1


@dataclass
class UploadSettings:
    """
    Upload pipeline tuning.
    
    Attributes:
        default_folder: Destination folder hint when the caller gives none
        chunk_size: Bytes read and written per transport step
        progress_interval: Minimum seconds between progress callbacks
    """
    default_folder: str = 'wuridao'
    chunk_size: int = 64 * 1024
    progress_interval: float = 0.1


@dataclass
class APIConfig:
    """
    Complete asset store client configuration.
    
    Centralizes all configuration options for the HTTP transport.
    """
    base_url: str = 'http://localhost:3000'
    
    # Bearer token for the upload/delete endpoints
    auth_token: Optional[str] = None
    
    user_agent: str = 'mediaup/1.0.0'
    
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    
    extra_headers: Dict[str, str] = field(default_factory=dict)
    
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
        """Create configuration with SSL verification disabled (self-signed dev stores)."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )
    
    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }
    
    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }
        if self.auth_token:
            headers['Authorization'] = f"Bearer {self.auth_token}"
        
        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
