from dataclasses import dataclass


@dataclass(frozen=True)
class ClientConfig:
    """
    Static configuration of an IndexClient. The encoding scheme is fixed
    for the client's lifetime; both schemes must never share a physical table.
    """
    column_key: bool = True
    """
    Select the column-key encoding (one physical row per hash value, one
    column per range value). When False the legacy composite-row encoding
    is used (one physical row per hash/range pair).
    """

    column_family: str = "f"
    """
    Column family holding every index cell.
    """

    max_row_reads: int = 100
    """
    Maximum number of physical rows fetched by a single multi-row read
    during query fan-out.
    """

    query_parallelism: int = 100
    """
    Maximum number of concurrent per-query reads on the legacy path.
    """
