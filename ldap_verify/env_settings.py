from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class EnvSettings(BaseSettings):
    # Directory
    ldap_server: str = Field("ldaps://ldap.jumpcloud.com:636", alias="LDAP_SERVER")
    ldap_bind_dn: str = Field("", alias="LDAP_BIND_DN")
    ldap_password: str = Field("", alias="LDAP_PASSWORD")
    ldap_base_dn: str = Field("", alias="LDAP_BASE_DN")
    ldap_starttls: bool = Field(False, alias="LDAP_STARTTLS")

    # TLS validation
    ldap_tls_validate: bool = Field(True, alias="LDAP_TLS_VALIDATE")
    ldap_ca_cert_file: str = Field("", alias="LDAP_CA_CERT_FILE")

    # Limits (seconds / entries)
    ldap_connect_timeout: int = Field(15, alias="LDAP_CONNECT_TIMEOUT")
    ldap_search_size_limit: int = Field(50, alias="LDAP_SEARCH_SIZE_LIMIT")
    ldap_search_time_limit: int = Field(10, alias="LDAP_SEARCH_TIME_LIMIT")
    ldap_request_timeout: int = Field(30, alias="LDAP_REQUEST_TIMEOUT")

    # Resolution
    ldap_strategies: str = Field("email,user_id,display_name,combined", alias="LDAP_STRATEGIES")
    ldap_expose_diagnostics: bool = Field(False, alias="LDAP_EXPOSE_DIAGNOSTICS")

    # HTTP
    cors_allow_origins: str = Field("*", alias="CORS_ALLOW_ORIGINS")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_dir: str = Field("", alias="LOG_DIR")
    log_retention_days: int = Field(30, alias="LOG_RETENTION_DAYS")

    class Config:
        populate_by_name = True

    @property
    def cors_origins(self) -> list[str]:
        return [x.strip() for x in (self.cors_allow_origins or "").split(",") if x.strip()]

    def presence_report(self) -> dict[str, str]:
        """SET/MISSING per directory setting (values are never reported)."""
        keys = {
            "LDAP_SERVER": self.ldap_server,
            "LDAP_BIND_DN": self.ldap_bind_dn,
            "LDAP_PASSWORD": self.ldap_password,
            "LDAP_BASE_DN": self.ldap_base_dn,
        }
        return {k: "SET" if (v or "").strip() else "MISSING" for k, v in keys.items()}


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
