import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RouteRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    prefix: str
    upstream: str

    @field_validator('prefix')
    @classmethod
    def prefix_is_path(cls, v: str) -> str:
        if not v.startswith('/'):
            raise ValueError(f'Route prefix must start with "/", got {v!r}')
        return v

    @field_validator('upstream')
    @classmethod
    def upstream_is_base_url(cls, v: str) -> str:
        url = httpx.URL(v)
        if url.scheme not in ('http', 'https') or not url.host:
            raise ValueError(f'Upstream must be an absolute http(s) URL, got {v!r}')
        if url.path not in ('', '/') or url.query:
            raise ValueError(f'Upstream must not carry a path or query, got {v!r}')
        return v.rstrip('/')

    @property
    def hostname(self) -> str:
        return httpx.URL(self.upstream).host


# Declaration order is match precedence
DEFAULT_ROUTES: tuple[RouteRule, ...] = (
    RouteRule(prefix='/openai', upstream='https://api.openai.com'),
    RouteRule(prefix='/anthropic', upstream='https://api.anthropic.com'),
    RouteRule(prefix='/deepseek', upstream='https://api.deepseek.com'),
    RouteRule(prefix='/kimi', upstream='https://api.moonshot.cn'),
    RouteRule(prefix='/telegram', upstream='https://api.telegram.org'),
    RouteRule(prefix='/instagram', upstream='https://graph.instagram.com'),
    RouteRule(prefix='/facebook', upstream='https://graph.facebook.com'),
    RouteRule(prefix='/ig-private', upstream='https://i.instagram.com'),
    RouteRule(prefix='/threads', upstream='https://www.threads.net'),
)


class Settings(BaseSettings):
    """
    Process configuration, read once from the environment at startup.

    Passed explicitly into the application factory; nothing reads the
    environment while serving.
    """
    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        populate_by_name=True,
    )

    host: str = Field(default='0.0.0.0', alias='HOST')
    port: int = Field(default=8080, alias='PORT', ge=1, le=65535)
    proxy_secret: str | None = Field(default=None, alias='PROXY_SECRET')
    region: str = Field(default='unknown', alias='FLY_REGION')
    connect_timeout: float | None = Field(default=None, alias='PROXY_CONNECT_TIMEOUT')
    read_timeout: float | None = Field(default=None, alias='PROXY_READ_TIMEOUT')
    log_level: str = Field(default='INFO', alias='LOG_LEVEL')
    routes: tuple[RouteRule, ...] = DEFAULT_ROUTES

    @field_validator('region', mode='before')
    @classmethod
    def region_or_unknown(cls, v):
        return v or 'unknown'

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def auth_enabled(self) -> bool:
        return bool(self.proxy_secret)

    def timeout(self) -> httpx.Timeout:
        """Outbound timeouts; unset values mean wait indefinitely."""
        return httpx.Timeout(None, connect=self.connect_timeout, read=self.read_timeout)
