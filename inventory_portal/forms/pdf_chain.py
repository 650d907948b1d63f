"""
PDF Rendering Chain
===================
Ordered list of rendering strategies behind one interface. Strategies are
tried strictly one after another; the first that returns a PDF wins and the
rest are never invoked.

A strategy attempt fails when:
  - its capability check reports the runtime dependency missing
  - render() raises
  - render() exceeds the per-attempt timeout
  - the returned bytes are not a PDF

Failures are logged with their cause and absorbed. Only when every strategy
has failed does the chain raise PDFGenerationFailed, whose message never
depends on which strategies failed or why.
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout

log = logging.getLogger("portal.pdf")

PDF_MAGIC = b"%PDF"


class StrategyUnavailable(RuntimeError):
    """Capability check failed: the strategy cannot run in this environment."""


class PDFGenerationFailed(RuntimeError):
    """Every strategy in the chain failed."""

    def __init__(self, attempts=None):
        super().__init__("PDF generation failed")
        self.attempts = attempts or []


class PDFStrategy:
    """One way of turning (quotation, enriched items) into PDF bytes."""

    name = "base"

    def capability(self):
        """(available, reason). Cheap; must not launch anything heavy."""
        return True, ""

    def render(self, quotation: dict, items: list) -> bytes:
        raise NotImplementedError


class RenderChain:

    def __init__(self, strategies, timeout: float = 45.0):
        if not strategies:
            raise ValueError("RenderChain needs at least one strategy")
        self.strategies = list(strategies)
        self.timeout = timeout

    def capabilities(self) -> list:
        report = []
        for s in self.strategies:
            try:
                ok, reason = s.capability()
            except Exception as e:
                ok, reason = False, f"capability check raised: {e}"
            report.append({"strategy": s.name, "available": bool(ok), "reason": reason})
        return report

    def _attempt(self, strategy, quotation, items) -> bytes:
        ok, reason = strategy.capability()
        if not ok:
            raise StrategyUnavailable(reason or f"{strategy.name} unavailable")

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"pdf-{strategy.name}")
        try:
            future = pool.submit(strategy.render, quotation, items)
            try:
                pdf = future.result(timeout=self.timeout)
            except FutureTimeout:
                future.cancel()
                raise TimeoutError(f"{strategy.name} exceeded {self.timeout:.0f}s")
        finally:
            # a hung worker must not block the next strategy
            pool.shutdown(wait=False)

        if not isinstance(pdf, (bytes, bytearray)) or not bytes(pdf[:4]) == PDF_MAGIC:
            raise ValueError(f"{strategy.name} returned non-PDF output")
        return bytes(pdf)

    def generate(self, quotation: dict, items: list) -> dict:
        """Run strategies in order. Returns {pdf, strategy, attempts}."""
        attempts = []
        qid = str(quotation.get("_id", ""))
        for strategy in self.strategies:
            t0 = time.time()
            log.info("PDF strategy %s starting for %s", strategy.name, qid,
                     extra={"strategy": strategy.name, "quotation_id": qid})
            try:
                pdf = self._attempt(strategy, quotation, items)
            except Exception as e:
                duration_ms = round((time.time() - t0) * 1000, 1)
                attempts.append({"strategy": strategy.name, "ok": False,
                                 "error": f"{type(e).__name__}: {e}",
                                 "duration_ms": duration_ms})
                log.warning("PDF strategy %s failed for %s: %s: %s",
                            strategy.name, qid, type(e).__name__, e,
                            extra={"strategy": strategy.name, "quotation_id": qid,
                                   "duration_ms": duration_ms})
                continue

            duration_ms = round((time.time() - t0) * 1000, 1)
            attempts.append({"strategy": strategy.name, "ok": True,
                             "bytes": len(pdf), "duration_ms": duration_ms})
            log.info("PDF strategy %s produced %d bytes in %.0fms",
                     strategy.name, len(pdf), duration_ms,
                     extra={"strategy": strategy.name, "quotation_id": qid,
                            "duration_ms": duration_ms})
            return {"pdf": pdf, "strategy": strategy.name, "attempts": attempts}

        log.error("PDF generation failed for %s: all %d strategies exhausted",
                  qid, len(self.strategies), extra={"quotation_id": qid})
        raise PDFGenerationFailed(attempts)
