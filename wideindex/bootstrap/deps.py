import json
from functools import lru_cache

from pydantic import ValidationError

from wideindex.bootstrap.config.settings import WideIndexConfig, StoreSettings
from wideindex.core.client import IndexClient
from wideindex.core.ports.store import WideColumnStore
from wideindex.infra.lmdb_store.aiobackend import LMDBStore
from wideindex.infra.msgpack_serializer import MsgPackSerializer


@lru_cache
def get_config() -> WideIndexConfig:
    try:
        return WideIndexConfig()  # type: ignore[call-arg]
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))


def build_store(settings: StoreSettings) -> WideColumnStore:
    """
    Create the configured store. Must be called from within a running
    event loop, as the Bigtable client starts background tasks.
    """
    if settings.backend == "bigtable":
        # optional dependency, installed with the `bigtable` extra
        from wideindex.infra.bigtable_store import BigtableStore

        bt = settings.bigtable
        return BigtableStore(
            project=bt.project,
            instance=bt.instance,
            app_profile_id=bt.app_profile_id,
            api_endpoint=bt.api_endpoint,
        )

    lmdb_settings = settings.lmdb
    return LMDBStore.open(
        lmdb_settings.data_dir,
        serializer=MsgPackSerializer(),
        map_size=lmdb_settings.map_size,
        max_dbs=lmdb_settings.max_dbs,
        max_readers=lmdb_settings.max_readers,
        max_writers=lmdb_settings.max_writers,
    )


def build_client(config: WideIndexConfig) -> IndexClient:
    store = build_store(config.store)
    return IndexClient(store, config.client_config())
