from dataclasses import dataclass


@dataclass(frozen=True)
class IndexEntry:
    """
    Logical index entry. The last write for a given
    (table_name, hash_value, range_value) wins.
    """
    table_name: str
    hash_value: str
    range_value: bytes
    value: bytes


@dataclass(frozen=True)
class IndexQuery:
    """
    Logical read over one hash value of a table.

    At most one of `range_value_prefix` / `range_value_start` is used, the
    prefix taking precedence. `value_equal` is an exact-match filter applied
    client-side to every returned value.
    """
    table_name: str
    hash_value: str
    range_value_prefix: bytes | None = None
    range_value_start: bytes | None = None
    value_equal: bytes | None = None

    @property
    def is_filtered(self) -> bool:
        return bool(
            self.range_value_prefix
            or self.range_value_start
            or self.value_equal is not None
        )

    def matches(self, range_value: bytes, value: bytes) -> bool:
        if self.range_value_prefix:
            if not range_value.startswith(self.range_value_prefix):
                return False
        elif self.range_value_start and range_value < self.range_value_start:
            return False
        if self.value_equal is not None and value != self.value_equal:
            return False
        return True
