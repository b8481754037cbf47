from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from wideindex.bootstrap.config.loader import get_configfile
from wideindex.core.models.config import ClientConfig


class LMDBSettings(BaseModel):
    data_dir: Annotated[
        Path,
        Field(
            description=(
                "Directory holding the LMDB environment.\n"
                "Every index table is a named database inside this environment.\n"
                "It must exist or be creatable, writable, and persistent across restarts."
            )
        )
    ]

    map_size: Annotated[
        int,
        Field(
            description="Maximum size of the LMDB memory map, in bytes.",
            default=1 << 30
        )
    ]

    max_dbs: Annotated[
        int,
        Field(
            description="Maximum number of tables (named databases) in the environment.",
            default=256
        )
    ]

    max_readers: Annotated[
        int,
        Field(
            description="Number of threads serving read requests.",
            default=4
        )
    ]

    max_writers: Annotated[
        int,
        Field(
            description="Number of threads serving write requests.",
            default=1
        )
    ]


class BigtableSettings(BaseModel):
    project: Annotated[
        str,
        Field(description="Bigtable project ID.")
    ]

    instance: Annotated[
        str,
        Field(description="Bigtable instance ID.")
    ]

    app_profile_id: Annotated[
        str | None,
        Field(
            description="Application profile used to route requests.",
            default=None
        )
    ]

    api_endpoint: Annotated[
        str | None,
        Field(
            description=(
                "Override of the Bigtable data API endpoint (host:port).\n"
                "Leave unset to use the default endpoint, or set the\n"
                "BIGTABLE_EMULATOR_HOST environment variable to use an emulator."
            ),
            default=None
        )
    ]


class StoreSettings(BaseModel):
    backend: Annotated[
        Literal["lmdb", "bigtable"],
        Field(
            description="Wide-column store holding the index tables.",
            default="lmdb"
        )
    ]

    lmdb: Annotated[
        LMDBSettings | None,
        Field(description="Settings of the embedded LMDB store.", default=None)
    ]

    bigtable: Annotated[
        BigtableSettings | None,
        Field(description="Settings of the Cloud Bigtable store.", default=None)
    ]

    @model_validator(mode="after")
    def validate_backend(self) -> "StoreSettings":
        if getattr(self, self.backend) is None:
            raise ValueError(f"store.{self.backend} section is required for the '{self.backend}' backend")
        return self


class SchemaSettings(BaseModel):
    column_key: Annotated[
        bool,
        Field(
            description=(
                "Use the column-key encoding: one physical row per hash value and\n"
                "one column per range value. When false, the legacy encoding stores\n"
                "one physical row per hash/range pair.\n\n"
                "The two encodings cannot share a table: switching requires new tables."
            ),
            default=True
        )
    ]

    column_family: Annotated[
        str,
        Field(description="Column family holding the index cells.", default="f")
    ]


class QuerySettings(BaseModel):
    max_row_reads: Annotated[
        int,
        Field(
            description="Maximum number of rows fetched by one multi-row read.",
            default=100,
            gt=0
        )
    ]

    parallelism: Annotated[
        int,
        Field(
            description="Maximum number of concurrent single-query reads (legacy encoding).",
            default=100,
            gt=0
        )
    ]


class WideIndexConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WIDEINDEX_",
        env_nested_delimiter="__",
        extra="allow"
    )

    store: Annotated[
        StoreSettings,
        Field(
            description=(
                "Storage backend configuration.\n"
                "Selects the wide-column store and how to reach it."
            )
        )
    ]

    schema_: Annotated[
        SchemaSettings,
        Field(
            alias="schema",
            description="Key encoding of the index tables.",
            default_factory=SchemaSettings
        )
    ]

    query: Annotated[
        QuerySettings,
        Field(
            description="Read fan-out limits.",
            default_factory=QuerySettings
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=get_configfile()),
        )

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            column_key=self.schema_.column_key,
            column_family=self.schema_.column_family,
            max_row_reads=self.query.max_row_reads,
            query_parallelism=self.query.parallelism,
        )
