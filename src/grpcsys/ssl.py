"""Recover the system OpenSSL location from the CMake cache.

CMake resolves OpenSSL during configure but does not report where it found
it, so the generated ``CMakeCache.txt`` is scanned for the two library
entries. Only these two keys are recognised; newer CMake releases may
write additional OpenSSL entries that are ignored here.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from grpcsys.errors import SslCacheError

CRYPTO_KEY = "OPENSSL_CRYPTO_LIBRARY:FILEPATH="
SSL_KEY = "OPENSSL_SSL_LIBRARY:FILEPATH="
EXPECTED_KEYS = 2


@dataclass(frozen=True, slots=True)
class SslLocation:
    crypto_dir: Path
    ssl_dir: Path

    def search_paths(self) -> tuple[Path, Path]:
        return (self.crypto_dir, self.ssl_dir)


def locate(cache_path: str | Path) -> SslLocation:
    path = Path(cache_path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise SslCacheError(
            "CMake cache could not be read.",
            hint="Ensure the native build configured successfully.",
            context={"operation": "locate_ssl", "path": str(path)},
        ) from exc

    found: dict[str, Path] = {}
    count = 0
    for line in lines:
        for key in (CRYPTO_KEY, SSL_KEY):
            if line.startswith(key):
                found[key] = Path(line[len(key):]).parent
                count += 1
                break

    if count != EXPECTED_KEYS or len(found) != EXPECTED_KEYS:
        raise SslCacheError(
            f"CMake cache invalid, file {path} contains {count} ssl keys!",
            hint="The CMake cache format may have changed; check the OpenSSL entries.",
            context={"operation": "locate_ssl", "path": str(path), "count": str(count)},
        )
    return SslLocation(crypto_dir=found[CRYPTO_KEY], ssl_dir=found[SSL_KEY])
