# === FILE: catalog_scout/config.py ===
"""
Loading and validation of the CatalogScout crawl configuration.
Pydantic describes the schema and validates the data read from YAML or JSON.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    ValidationError,
    field_validator,
)

from catalog_scout.brands import BRAND_TABLE, CrawlTarget, resolve_targets

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class Credentials(BaseModel):
    """Trade account login."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    identity: str = Field("", description="Account e-mail / user name.")
    secret: SecretStr = Field(SecretStr(""), description="Account password.")


class StorageEndpoint(BaseModel):
    """Remote PostgREST (Supabase) endpoint used by the persistence sink."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: Optional[HttpUrl] = Field(None, description="Project URL, e.g. https://xyz.supabase.co")
    key: Optional[SecretStr] = Field(None, description="Service or anon key.")
    table: str = Field("item_latest", min_length=1, description="Upsert target table.")

    @property
    def configured(self) -> bool:
        return self.url is not None and self.key is not None and bool(self.key.get_secret_value())


class SiteConfig(BaseModel):
    """Site origin, login endpoints and the selectors the login flow relies on."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: HttpUrl = Field("https://www.kravet.com", description="Site origin.")
    login_path: str = "/customer/account/login/"
    login_post_path: str = "/customer/account/loginPost/"
    account_path: str = "/customer/account/"
    session_cookies: List[str] = Field(default_factory=lambda: ["PHPSESSID"])
    username_selector: str = 'input[name="login[username]"]'
    password_selector: str = 'input[name="login[password]"]'
    submit_selector: str = 'button[type="submit"], button.login'
    logged_in_selector: str = '.customer-welcome, a[href*="customer/account/logout"]'

    @property
    def origin(self) -> str:
        return str(self.base_url).rstrip("/")

    def absolute(self, path: str) -> str:
        return f"{self.origin}/{path.lstrip('/')}"


class CrawlerConfig(BaseModel):
    """Configuration for one crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    credentials: Credentials = Field(default_factory=Credentials)
    brands: List[str] = Field(default_factory=lambda: ["kravet"], min_length=1)
    max_products_per_brand: int = Field(10000, ge=1, description="Per-brand product cap.")
    max_concurrency: int = Field(2, ge=1, description="Concurrent page workers.")
    storage: StorageEndpoint = Field(default_factory=StorageEndpoint)
    skip_persistence: bool = False
    require_auth: bool = Field(False, description="Abort instead of crawling unauthenticated.")

    renderer: Literal["playwright", "http"] = "playwright"
    headless: bool = True
    user_agent: str = Field(_DEFAULT_USER_AGENT, min_length=1)
    navigation_timeout: float = Field(120.0, gt=0, description="Seconds per page load.")
    listing_wait_timeout: float = Field(30.0, ge=0, description="Wait for listing markup.")
    login_settle: float = Field(3.0, ge=0)
    product_settle: float = Field(1.0, ge=0)
    retry_times: int = Field(2, ge=0, description="Retries on 5xx/429 (http renderer).")

    site: SiteConfig = Field(default_factory=SiteConfig)
    output: Path = Field(Path("results.jsonl"), description="JSON-lines result stream.")

    @field_validator("brands", mode="after")
    @classmethod
    def _known_brands(cls, v: List[str]) -> List[str]:
        keys = [b.strip().lower() for b in v]
        unknown = [k for k in keys if k not in BRAND_TABLE]
        if unknown:
            raise ValueError(
                f"unknown brand(s) {', '.join(unknown)}; known: {', '.join(BRAND_TABLE)}"
            )
        return list(dict.fromkeys(keys))

    def targets(self) -> List[CrawlTarget]:
        return resolve_targets(self.brands, self.site.origin)

    def public_dict(self) -> dict[str, Any]:
        """JSON-friendly dump with secrets masked."""
        return json.loads(self.model_dump_json())


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Read YAML or JSON and return a validated CrawlerConfig.
    Raises FileNotFoundError when the config file is missing.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlerConfig(**data)


__all__ = [
    "Credentials",
    "StorageEndpoint",
    "SiteConfig",
    "CrawlerConfig",
    "ValidationError",
    "load_config",
]
