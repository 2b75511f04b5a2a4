"""Health evaluator — runs the probes of one or all check groups on demand.

Probes in a pass run strictly one after another. The first failing probe
ends the pass and becomes the verdict; later probes (and, for the aggregate
check, later groups) are never contacted. Nothing is cached between passes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass

import httpx

from ..checks.registry import Configuration, Probe

logger = logging.getLogger(__name__)


# ── Errors ───────────────────────────────────────────────────────────────────


class ProbeError(Exception):
    """A single probe did not pass."""

    def __init__(self, probe: Probe, reason: str) -> None:
        self.probe = probe
        self.reason = reason
        super().__init__(f"check {probe.name}: {reason}")


class ProbeTransportError(ProbeError):
    """The request never produced a full response (DNS, refused, TLS, timeout, bad URL)."""

    def __init__(self, probe: Probe, detail: str) -> None:
        self.detail = detail
        super().__init__(probe, f"transport error: {detail}")


class ProbeStatusMismatchError(ProbeError):
    """The target answered with a status other than the expected one."""

    def __init__(self, probe: Probe, actual: int) -> None:
        self.actual = actual
        self.expected = probe.expected_status
        super().__init__(probe, f"unexpected status {actual} (expected {probe.expected_status})")


class UnknownGroupError(KeyError):
    """Raised when a group name is not present in the configuration."""

    def __init__(self, group: str) -> None:
        self.group = group
        super().__init__(group)

    def __str__(self) -> str:
        return f"Unknown check group: {self.group}"


# ── Result ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one evaluation pass."""

    ok: bool
    group: str = ""
    probe: str = ""
    reason: str = ""
    error: ProbeError | None = None

    @classmethod
    def passed(cls) -> EvaluationResult:
        return cls(ok=True)

    @classmethod
    def failed(cls, group: str, error: ProbeError) -> EvaluationResult:
        return cls(ok=False, group=group, probe=error.probe.name, reason=error.reason, error=error)


# ── Evaluator ────────────────────────────────────────────────────────────────


def _describe(exc: Exception) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


class HealthEvaluator:
    """Evaluates probe groups from a loaded ``Configuration``.

    Holds one ``httpx.AsyncClient`` shared by all concurrent requests. The
    configuration is never mutated, so no locking is needed.
    """

    def __init__(
        self,
        config: Configuration,
        client: httpx.AsyncClient | None = None,
        user_agent: str = "healthagg",
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _fetch(self, url: str, timeout: float) -> int:
        """GET ``url``, drain and discard the body, return the status code."""
        async with self._client.stream("GET", url, timeout=timeout) as resp:
            async for _ in resp.aiter_raw():
                pass
            return resp.status_code

    async def run_probe(self, probe: Probe) -> None:
        """Run one probe. Returns on success, raises a ``ProbeError`` otherwise.

        The effective timeout covers the whole exchange: connect, TLS, headers
        and body drain.
        """
        timeout = probe.effective_timeout
        t0 = time.perf_counter()
        try:
            status = await asyncio.wait_for(self._fetch(probe.url, timeout), timeout)
        except asyncio.TimeoutError as e:
            raise ProbeTransportError(probe, f"timed out after {timeout:g}s") from e
        except httpx.TimeoutException as e:
            raise ProbeTransportError(
                probe, f"timed out after {timeout:g}s ({type(e).__name__})",
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ProbeTransportError(probe, _describe(e)) from e
        except Exception as e:
            # e.g. IDNA failures on malformed hostnames surface as UnicodeError
            raise ProbeTransportError(probe, _describe(e)) from e

        if status != probe.expected_status:
            raise ProbeStatusMismatchError(probe, status)

        logger.debug(
            "Check %s passed: %d in %.1fms", probe.name, status, (time.perf_counter() - t0) * 1000,
        )

    async def evaluate(self, probes: Iterable[Probe], group: str = "") -> EvaluationResult:
        """Run ``probes`` in order, stopping at the first failure."""
        for probe in probes:
            try:
                await self.run_probe(probe)
            except ProbeError as e:
                logger.warning("Health check failed (%s/%s): %s", group, probe.name, e.reason)
                return EvaluationResult.failed(group, e)
        return EvaluationResult.passed()

    async def evaluate_group(self, group: str) -> EvaluationResult:
        """Evaluate a single named group. Raises ``UnknownGroupError`` if it is not configured."""
        probes = self.config.get(group)
        if probes is None:
            raise UnknownGroupError(group)
        return await self.evaluate(probes, group)

    async def evaluate_all(self) -> EvaluationResult:
        """Evaluate every group, stopping at the first failure anywhere.

        Groups are visited in mapping order (document order of the config
        file); no particular order is promised to callers.
        """
        for group, probes in self.config.checks.items():
            result = await self.evaluate(probes, group)
            if not result.ok:
                return result
        return EvaluationResult.passed()
