"""Settings file models (pydantic) and their conversion to engine objects."""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError
from .extractors.api_extractor import RestExtractor, expand_env_vars
from .extractors.base import BaseExtractor
from .extractors.file_extractor import FileExtractor, StaticExtractor
from .loaders.grist_loader import DEFAULT_API_URL, GristClient
from .models.mapping import FieldMapping
from .models.sync import SyncConfig, SyncMode
from .services.endpoint_resolver import parse_destination_url

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "GRIST_API_TOKEN"


class SourceType(str, Enum):
    REST = "rest"
    FILE = "file"
    INLINE = "inline"


class DestinationSettings(BaseModel):
    """Destination table. Either a URL or explicit ids; explicit ids win."""
    url: Optional[str] = None
    doc_id: Optional[str] = None
    table_id: Optional[str] = None
    api_url: Optional[str] = None
    api_token: Optional[str] = None
    timeout: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def resolve_url(self) -> "DestinationSettings":
        if self.url:
            endpoint = parse_destination_url(self.url)
            if endpoint is None and not (self.doc_id and self.table_id):
                raise ValueError(f"Cannot read a document id from url {self.url!r}")
            if endpoint is not None:
                self.doc_id = self.doc_id or endpoint.doc_id
                self.table_id = self.table_id or endpoint.table_id
                self.api_url = self.api_url or endpoint.base_url

        if not self.doc_id:
            raise ValueError("destination needs a doc_id or a document url")
        if not self.table_id:
            raise ValueError("destination needs a table_id")
        return self

    def token(self) -> Optional[str]:
        """Configured token with ${VAR} expanded, else GRIST_API_TOKEN."""
        if self.api_token:
            return expand_env_vars(self.api_token) or None
        return os.environ.get(TOKEN_ENV_VAR) or None

    def create_client(self, session: Optional[requests.Session] = None) -> GristClient:
        return GristClient(
            doc_id=self.doc_id,
            table_id=self.table_id,
            api_url=self.api_url or DEFAULT_API_URL,
            api_token=self.token(),
            session=session,
            timeout=self.timeout,
        )


class SourceSettings(BaseModel):
    """Where raw records come from."""
    type: SourceType = SourceType.REST
    url: Optional[str] = None
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    data_path: Optional[str] = None
    path: Optional[str] = None
    records: Optional[Any] = None
    timeout: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_location(self) -> "SourceSettings":
        if self.type == SourceType.REST and not self.url:
            raise ValueError("a rest source needs a url")
        if self.type == SourceType.FILE and not self.path:
            raise ValueError("a file source needs a path")
        return self

    def create_extractor(self, retry_attempts: int = 0, retry_delay: float = 1.0) -> BaseExtractor:
        if self.type == SourceType.REST:
            return RestExtractor(
                url=self.url,
                method=self.method,
                headers=self.headers,
                data_path=self.data_path,
                retry_attempts=retry_attempts,
                retry_delay=retry_delay,
                timeout=self.timeout,
            )
        if self.type == SourceType.FILE:
            return FileExtractor(self.path, data_path=self.data_path)
        return StaticExtractor(self.records or [])


class MappingSettings(BaseModel):
    destination_column: str
    source_path: str
    enabled: bool = True

    def to_field_mapping(self) -> FieldMapping:
        return FieldMapping(
            destination_column=self.destination_column,
            source_path=self.source_path,
            enabled=self.enabled,
        )


class SyncSection(BaseModel):
    mode: SyncMode = SyncMode.ADD
    unique_key: Optional[str] = None
    auto_create_columns: bool = True
    dry_run: bool = False
    retry_attempts: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)

    @field_validator("mode", mode="before")
    @classmethod
    def lower_mode(cls, value):
        return value.lower() if isinstance(value, str) else value

    def to_config(self) -> SyncConfig:
        return SyncConfig(
            mode=self.mode,
            unique_key=self.unique_key or None,
            auto_create_columns=self.auto_create_columns,
            dry_run=self.dry_run,
            retry_attempts=self.retry_attempts,
            retry_delay=self.retry_delay,
        )


class SyncSettings(BaseModel):
    """
    A complete settings file.

    Example:
        {
          "destination": {"url": "https://docs.getgrist.com/doc/abc123", "table_id": "Contacts"},
          "source": {"type": "rest", "url": "https://api.example.com/contacts"},
          "mapping": {"Email": "email", "City": "address.city"},
          "sync": {"mode": "upsert", "unique_key": "Email"}
        }
    """
    destination: DestinationSettings
    source: Optional[SourceSettings] = None
    mapping: List[MappingSettings] = Field(default_factory=list)
    sync: SyncSection = Field(default_factory=SyncSection)

    @field_validator("mapping", mode="before")
    @classmethod
    def mapping_from_dict(cls, value):
        # {"Column": "source.path"} shorthand
        if isinstance(value, dict):
            return [
                {"destination_column": column, "source_path": path}
                for column, path in value.items()
            ]
        return value

    def field_mappings(self) -> List[FieldMapping]:
        return [item.to_field_mapping() for item in self.mapping]

    def sync_config(self) -> SyncConfig:
        return self.sync.to_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncSettings":
        """
        Validate a settings dictionary.

        Raises:
            ConfigurationError: If the settings are invalid
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SyncSettings":
        """
        Read and validate a JSON settings file.

        Raises:
            ConfigurationError: If the file is missing, not JSON or invalid
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Settings file not found: {path}", field="config") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Settings file is not valid JSON: {e}", field="config") from e

        logger.info(f"Loaded settings from {path}")
        return cls.from_dict(data)
