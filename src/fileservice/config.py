from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FILESERVICE_", env_file=".env", extra="ignore")

    app_name: str = "file-service-api"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Azure Blob Storage
    azure_container: str = Field(default="files", validation_alias="AZURE_CONTAINER")
    azure_connection_string: str | None = Field(
        default=None, validation_alias="AZURE_STORAGE_CONNECTION_STRING"
    )
    azure_account_url: str | None = Field(default=None, validation_alias="AZURE_ACCOUNT_URL")
    azure_account_key: str | None = Field(default=None, validation_alias="AZURE_ACCOUNT_KEY")

    # SAS tokens
    sas_token_expiration_minutes: int = Field(
        default=30, ge=0, validation_alias="SAS_TOKEN_EXPIRATION_MINUTES"
    )

    # OIDC Authentication (optional, Azure AD or any OIDC issuer)
    oidc_issuer: str | None = Field(default=None, validation_alias="OIDC_ISSUER")
    oidc_audience: str | None = Field(default=None, validation_alias="OIDC_AUDIENCE")
    oidc_client_id: str | None = Field(default=None, validation_alias="OIDC_CLIENT_ID")
    oidc_roles_claim: str | None = Field(default="roles", validation_alias="OIDC_ROLES_CLAIM")
    oidc_jwks_cache_seconds: int = Field(default=3600, validation_alias="OIDC_JWKS_CACHE_SECONDS")

    # Observability
    log_level: str = "INFO"
    # Unset: JSON lines everywhere except env=dev
    log_json: bool | None = Field(default=None, validation_alias="LOG_JSON")

    # Security Headers
    enable_security_headers: bool = Field(default=True, validation_alias="ENABLE_SECURITY_HEADERS")
    enable_hsts: bool = Field(default=True, validation_alias="ENABLE_HSTS")
    hsts_max_age: int = Field(default=31536000, validation_alias="HSTS_MAX_AGE")  # 1 year

    @property
    def json_logs(self) -> bool:
        return self.log_json if self.log_json is not None else self.env != "dev"

    @property
    def oidc_audiences(self) -> tuple[str, ...]:
        """Audiences accepted in access tokens: the App ID URI and the client ID."""
        configured = tuple(a for a in (self.oidc_audience, self.oidc_client_id) if a)
        return configured or (self.app_name,)


settings = Settings()
