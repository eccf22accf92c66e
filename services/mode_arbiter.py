"""
Mode Arbiter

Decides per request whether questions come from live generation (online)
or from the static offline bank, based on a lightweight connectivity probe.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from generation.orchestrator import GenerationOrchestrator
from generation.settings import get_settings
from question_bank.selector import select

log = logging.getLogger(__name__)


async def is_online(
    probe_url: Optional[str] = None,
    timeout: float = 3.0,
    http: Optional[httpx.AsyncClient] = None,
    force_offline: bool = False,
) -> bool:
    """HEAD the probe URL; any response below 500 counts as online."""
    if force_offline:
        log.info("[MODE] FORCE_OFFLINE set; skipping connectivity probe")
        return False

    url = probe_url or get_settings().connectivity_probe_url
    client = http or httpx.AsyncClient(timeout=timeout)
    try:
        resp = await client.head(url, timeout=timeout)
        return resp.status_code < 500
    except httpx.HTTPError as e:
        log.warning(f"[MODE] Connectivity probe to {url} failed: {e}")
        return False
    finally:
        if http is None:
            await client.aclose()


class ModeArbiter:
    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        probe_url: Optional[str] = None,
        probe_timeout: float = 3.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.orchestrator = orchestrator
        self.probe_url = probe_url
        self.probe_timeout = probe_timeout
        self._http = http

    async def prepare(
        self,
        subject: str,
        count: int,
        objective: Optional[str] = None,
        difficulty: Optional[str] = "medium",
    ) -> Dict[str, Any]:
        """
        Produce questions for an exam session in whichever mode is available.

        Returns the batch as a dict with an extra `mode` field:
          online  → {questions, source, warning?, mode}
          offline → {questions, warning?, source: "local-bank", mode}
        """
        cfg = self.orchestrator.settings
        online = bool(self.orchestrator.providers) and await is_online(
            self.probe_url or cfg.connectivity_probe_url,
            self.probe_timeout,
            self._http,
            force_offline=cfg.force_offline,
        )
        if online:
            batch = await self.orchestrator.generate(subject, count, objective, difficulty)
            log.info(f"[MODE] online: {len(batch.questions)} questions, source={batch.source}")
            return {**batch.model_dump(), "mode": "online"}

        if not self.orchestrator.providers:
            log.info("[MODE] No providers configured; serving from the offline bank")
        selection = select(subject=subject, objective=objective, count=count)
        log.info(f"[MODE] offline: {len(selection.questions)} questions")
        return {**selection.model_dump(), "source": "local-bank", "mode": "offline"}


def build_arbiter(orchestrator: GenerationOrchestrator) -> ModeArbiter:
    return ModeArbiter(orchestrator, probe_timeout=min(3.0, orchestrator.settings.provider_timeout_seconds))
