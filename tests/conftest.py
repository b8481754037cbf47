import os
from typing import Generator

import pytest
import yaml

from tests.fake.fake_store import FakeStore
from tests.helpers import FakeWideIndexConfig

from wideindex.core.client import IndexClient
from wideindex.core.models.config import ClientConfig
from wideindex.infra.msgpack_serializer import MsgPackSerializer


@pytest.fixture
def serializer():
    return MsgPackSerializer()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def column_key_client(store):
    return IndexClient(store, ClientConfig(column_key=True))


@pytest.fixture
def legacy_client(store):
    return IndexClient(store, ClientConfig(column_key=False))


@pytest.fixture(params=[True, False], ids=["column_key", "legacy"])
def client(request, store):
    return IndexClient(store, ClientConfig(column_key=request.param))


@pytest.fixture
def config_file(tmp_path_factory):
    base = tmp_path_factory.mktemp("config")
    file = base / "wideindex.yaml"

    data = {
        "store": {
            "backend": "lmdb",
            "lmdb": {
                "data_dir": str(base / "data"),
                "map_size": 1 << 24,
            },
        },
        "schema": {
            "column_key": True,
        },
        "query": {
            "max_row_reads": 50,
            "parallelism": 8,
        },
    }

    file.write_text(yaml.dump(data))
    return file


@pytest.fixture
def wide_config(config_file) -> Generator[FakeWideIndexConfig, None, None]:
    backup = os.environ.copy()

    try:
        os.environ["TEST_WIDEINDEXCONFIG"] = str(config_file)
        yield FakeWideIndexConfig()
    finally:
        os.environ.clear()
        os.environ.update(backup)
