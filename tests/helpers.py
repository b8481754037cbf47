import os

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

from wideindex.bootstrap.config.settings import WideIndexConfig
from wideindex.core.ports.batch import ReadBatch


class FakeWideIndexConfig(WideIndexConfig, BaseSettings):
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
            YamlConfigSettingsSource(settings_cls, yaml_file=os.environ["TEST_WIDEINDEXCONFIG"]),
        )


class Collector:
    """Records every (query, range value, value) delivered to a callback."""

    def __init__(self, stop_after: int | None = None) -> None:
        self.calls = 0
        self.results: list[tuple[object, bytes, bytes]] = []
        self._stop_after = stop_after

    def __call__(self, query, batch: ReadBatch) -> bool:
        self.calls += 1
        for range_value, value in batch:
            self.results.append((query, range_value, value))
        return self._stop_after is None or self.calls < self._stop_after

    def single(self, batch: ReadBatch) -> bool:
        return self(None, batch)

    @property
    def pairs(self) -> list[tuple[bytes, bytes]]:
        return [(range_value, value) for _, range_value, value in self.results]
