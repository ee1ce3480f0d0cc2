"""
GeoSitePipeline for pt-geosite

This module implements the run orchestration: visit every configured backend,
merge their tracker hostnames into one DomainSet, then encode and write the
GeoSite artifact.

Pipeline States:
    IDLE → FETCHING_BACKENDS → ALL_FETCHED → ENCODING → WRITTEN → DONE
    FETCHING_BACKENDS → ABORTED   (any backend failed)
    ENCODING → ABORTED            (serialization or write failed)

All-or-nothing Policy:
    - Backends are visited one at a time, in configuration order
    - A backend that fails authentication or its top-level fetch is recorded,
      and the remaining backends are still visited so every failure is logged
    - If any backend failed, nothing is written: a partial list would
      silently under-route traffic, so the previous artifact is kept as is
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..adapters.source_factory import SourceFactory
from ..config import RunConfig
from ..services.domain_set import DomainSet
from ..services.exceptions import BackendError, GeoSiteError, WriteFailure
from ..services.geosite_encoder import encode_geosite
from ..services.structured_logging import (
    CorrelationContext,
    generate_run_id,
    get_structured_logger,
)

logger = get_structured_logger(__name__)

ARTIFACT_MODE = 0o666


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING_BACKENDS = "fetching_backends"
    ALL_FETCHED = "all_fetched"
    ENCODING = "encoding"
    WRITTEN = "written"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class BackendFailure:
    """A backend that could not be read, and why."""
    endpoint: str
    error: BackendError

    def __str__(self) -> str:
        return f"{self.endpoint}: {self.error}"


@dataclass
class RunResult:
    """Outcome of one pipeline run."""
    state: PipelineState
    domains: Tuple[str, ...] = ()
    failures: List[BackendFailure] = field(default_factory=list)
    output_path: Optional[str] = None
    error: Optional[GeoSiteError] = None

    @property
    def written(self) -> bool:
        return self.state == PipelineState.DONE


def write_artifact(path: str, data: bytes) -> None:
    """
    Replace ``path`` with ``data`` atomically.

    The bytes go to a temporary file in the same directory, which is renamed
    over ``path`` only once fully written, so a failed write leaves any
    previous artifact intact. The file is created with mode 0666 (subject to
    the process umask).

    Raises:
        WriteFailure: On any filesystem error
    """
    directory, name = os.path.split(os.path.abspath(path))
    tmp_path = os.path.join(directory, f".{name}.{os.getpid()}.tmp")
    try:
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, ARTIFACT_MODE)
    except OSError as e:
        raise WriteFailure(f"failed to write {path}: {e}", path=path) from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        os.unlink(tmp_path)
        raise WriteFailure(f"failed to write {path}: {e}", path=path) from e


class GeoSitePipeline:
    """
    Orchestrates fetching, encoding and writing for one run.

    Args:
        run_config: Immutable run configuration
        source_factory: Factory creating DomainSource instances (tests inject
            one with a mock transport)

    Example:
        >>> run_config = build_run_config(qb_specs=["admin:adminadmin@10.0.0.2:8080"])
        >>> result = await GeoSitePipeline(run_config).run()
        >>> result.written
        True
    """

    def __init__(self, run_config: RunConfig, source_factory: Optional[SourceFactory] = None):
        self.run_config = run_config
        self.source_factory = source_factory or SourceFactory(timeout=run_config.http_timeout)
        self.state = PipelineState.IDLE

    async def run(self) -> RunResult:
        """
        Execute the run.

        Run-level failures (encoding, writing) are reported in the returned
        RunResult rather than raised.
        """
        with CorrelationContext(run_id=generate_run_id()):
            domains, failures = await self._fetch_stage()

            if failures:
                self.state = PipelineState.ABORTED
                logger.error(
                    "Errors occurred during domain fetching; file write skipped.",
                    extra_data={"failed_backends": [f.endpoint for f in failures]},
                )
                return RunResult(state=self.state, failures=failures)

            ordered = domains.finalize()
            try:
                self._write_stage(ordered)
            except GeoSiteError as e:
                self.state = PipelineState.ABORTED
                logger.error(f"Artifact not written: {e}")
                return RunResult(state=self.state, domains=ordered, error=e)

            self.state = PipelineState.DONE
            return RunResult(state=self.state, domains=ordered, output_path=self.run_config.dat_path)

    async def _fetch_stage(self) -> Tuple[DomainSet, List[BackendFailure]]:
        self.state = PipelineState.FETCHING_BACKENDS
        domains = DomainSet()
        failures: List[BackendFailure] = []

        for endpoint in self.run_config.endpoints:
            with CorrelationContext(backend=str(endpoint)):
                source = self.source_factory.get_source(endpoint)
                before = len(domains)
                try:
                    found = await source.collect_domains(domains)
                except BackendError as e:
                    logger.error(f"Error fetching domains from {endpoint}: {e}")
                    failures.append(BackendFailure(endpoint=str(endpoint), error=e))
                    continue

                logger.info(
                    f"Collected {found} tracker hostnames ({len(domains) - before} new)",
                    extra_data={"found": found, "new": len(domains) - before},
                )

        if not failures:
            self.state = PipelineState.ALL_FETCHED
        return domains, failures

    def _write_stage(self, ordered: Tuple[str, ...]) -> None:
        self.state = PipelineState.ENCODING
        data = encode_geosite(self.run_config.category, ordered, match_type=self.run_config.match_type)

        write_artifact(self.run_config.dat_path, data)
        self.state = PipelineState.WRITTEN
        logger.info(
            f"Wrote {len(ordered)} domains to {self.run_config.dat_path}",
            extra_data={"category": self.run_config.category, "bytes": len(data)},
        )


async def run_pipeline(run_config: RunConfig, source_factory: Optional[SourceFactory] = None) -> RunResult:
    """Convenience wrapper: build a GeoSitePipeline and run it."""
    return await GeoSitePipeline(run_config, source_factory=source_factory).run()
