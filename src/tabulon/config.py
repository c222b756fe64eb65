"""Engine wide defaults.

The defaults are loaded once per process and can be
overridden through environment variables:

* ``TABULON_PARALLEL_THRESHOLD``: minimum number of elements
  before elementwise operations are split across workers.
* ``TABULON_MAX_WORKERS``: size of the shared worker pool,
  defaults to the number of available CPUs.
* ``TABULON_MISSING_PLACEMENT``: ``first`` or ``last``, where
  missing values end up when sorting.
* ``TABULON_COMPRESSION``: default codec used when saving files.

Invalid values are ignored, a warning is logged and the
built-in default is used instead.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping

log = logging.getLogger(__name__)

VALID_MISSING_PLACEMENTS = frozenset({"first", "last"})
VALID_COMPRESSIONS = frozenset({"gzip", "bz2", "lz4", "zstd", "brotli"})
_MAX_WORKERS_LIMIT = 1024


@dataclass(frozen=True)
class EngineDefaults:
    parallel_threshold: int = 100_000
    max_workers: int | None = None
    missing_placement: str = "last"
    thread_name_prefix: str = "tabulon-worker"
    compression: str = "gzip"

    @property
    def workers(self) -> int:
        """Number of workers the shared pool will be created with."""
        return self.max_workers or os.cpu_count() or 1


def _parse_positive_int(name: str, raw: str | None, default: int | None) -> int | None:
    if raw is None:
        return default
    try:
        parsed = int(raw.strip())
    except ValueError:
        parsed = 0
    if parsed <= 0:
        log.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default
    return parsed


def _parse_choice(name: str, raw: str | None, default: str, valid: frozenset[str]) -> str:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value not in valid:
        log.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default
    return value


def load_engine_defaults(environ: Mapping[str, str] | None = None) -> EngineDefaults:
    """Build the defaults from the environment.

    :param environ: The mapping to read overrides from, ``os.environ`` if not provided.
    """
    if environ is None:
        environ = os.environ
    builtin = EngineDefaults()

    max_workers = _parse_positive_int(
        "TABULON_MAX_WORKERS", environ.get("TABULON_MAX_WORKERS"), builtin.max_workers
    )
    if max_workers is not None:
        max_workers = min(max_workers, _MAX_WORKERS_LIMIT)

    return EngineDefaults(
        parallel_threshold=_parse_positive_int(
            "TABULON_PARALLEL_THRESHOLD",
            environ.get("TABULON_PARALLEL_THRESHOLD"),
            builtin.parallel_threshold,
        ),
        max_workers=max_workers,
        missing_placement=_parse_choice(
            "TABULON_MISSING_PLACEMENT",
            environ.get("TABULON_MISSING_PLACEMENT"),
            builtin.missing_placement,
            VALID_MISSING_PLACEMENTS,
        ),
        thread_name_prefix=builtin.thread_name_prefix,
        compression=_parse_choice(
            "TABULON_COMPRESSION",
            environ.get("TABULON_COMPRESSION"),
            builtin.compression,
            VALID_COMPRESSIONS,
        ),
    )


@lru_cache(maxsize=1)
def get_engine_defaults() -> EngineDefaults:
    """The process wide defaults, read from the environment on first use."""
    defaults = load_engine_defaults()
    log.debug("Engine defaults loaded: %s", defaults)
    return defaults
