import logging


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s',
    )


def parse_bytes(raw: str, as_hex: bool) -> bytes:
    return bytes.fromhex(raw) if as_hex else raw.encode()


def format_bytes(data: bytes, as_hex: bool) -> str:
    return data.hex() if as_hex else data.decode(errors="backslashreplace")
