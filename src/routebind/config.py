from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeneratorSettings(BaseSettings):
    """
    Settings consumed by the generator.

    The three collaborator paths are spliced verbatim into emitted `use`
    lines; call sites use their last path segment.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROUTEBIND_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Output (downstream only; the compiler never touches it)
    output_dir: str = Field(default="generated")
    file_suffix: str = Field(default="_api_client.rs")

    # Client-side collaborators
    client_path: str = Field(default="crate::api::ApiClient")
    error_path: str = Field(default="crate::api::ClientError")
    wrapper_path: str = Field(default="crate::api::ResponseWrapper")

    # Response wrappers recognized on handler return types
    single_wrappers: tuple[str, ...] = ("Json", "Wrapper", "ApiResponse")
    page_wrappers: tuple[str, ...] = ("Page", "PageWrapper")
    page_suffix: str = "_page"
    none_variant: str = "None"
    single_item_variant: str = "SingleItem"

    # Server-side extractor types; never imported by the client
    denied_imports: tuple[str, ...] = ("Body", "Json", "Path", "Query", "State", "Extension")

    log_level: str = "WARNING"

    @property
    def client_type(self) -> str:
        return _last_segment(self.client_path)

    @property
    def error_type(self) -> str:
        return _last_segment(self.error_path)

    @property
    def wrapper_type(self) -> str:
        return _last_segment(self.wrapper_path)

    @property
    def infrastructure_imports(self) -> list[str]:
        return [self.client_path, self.error_path, self.wrapper_path]


def _last_segment(path: str) -> str:
    return path.strip().split("::")[-1].strip()
