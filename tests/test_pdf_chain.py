"""
Tests for inventory_portal/forms/pdf_chain.py: ordering, fallthrough, timeouts.
"""
import time

import pytest

from inventory_portal.forms.pdf_chain import PDFGenerationFailed, PDFStrategy, RenderChain

PDF = b"%PDF-1.4\n%fake\n"
QUOTATION = {"_id": "65a1b2c3d4e5f6a7b8ab12cd", "customerName": "Ali Khan"}


class Recorder(PDFStrategy):
    """Strategy double with a scripted outcome."""

    def __init__(self, name, result=PDF, error=None, available=True, delay=0.0):
        self.name = name
        self.result = result
        self.error = error
        self.available = available
        self.delay = delay
        self.calls = 0

    def capability(self):
        return self.available, "" if self.available else f"{self.name} missing"

    def render(self, quotation, items):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class TestOrdering:

    def test_first_success_short_circuits(self):
        a, b = Recorder("a"), Recorder("b")
        result = RenderChain([a, b]).generate(QUOTATION, [])
        assert result["strategy"] == "a"
        assert result["pdf"] == PDF
        assert (a.calls, b.calls) == (1, 0)

    def test_falls_through_on_exception(self):
        a = Recorder("a", error=RuntimeError("chromium crashed"))
        b = Recorder("b")
        result = RenderChain([a, b]).generate(QUOTATION, [])
        assert result["strategy"] == "b"
        assert [att["ok"] for att in result["attempts"]] == [False, True]

    def test_unavailable_strategy_is_never_rendered(self):
        a = Recorder("a", available=False)
        b = Recorder("b")
        result = RenderChain([a, b]).generate(QUOTATION, [])
        assert result["strategy"] == "b"
        assert a.calls == 0
        assert "StrategyUnavailable" in result["attempts"][0]["error"]

    def test_non_pdf_output_is_a_failure(self):
        a = Recorder("a", result=b"<html>not a pdf</html>")
        b = Recorder("b")
        result = RenderChain([a, b]).generate(QUOTATION, [])
        assert result["strategy"] == "b"
        assert "non-PDF" in result["attempts"][0]["error"]

    def test_none_output_is_a_failure(self):
        a = Recorder("a", result=None)
        b = Recorder("b")
        assert RenderChain([a, b]).generate(QUOTATION, [])["strategy"] == "b"

    def test_third_strategy_reached(self):
        chain = RenderChain([
            Recorder("a", available=False),
            Recorder("b", error=OSError("no display")),
            Recorder("c"),
        ])
        assert chain.generate(QUOTATION, [])["strategy"] == "c"

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            RenderChain([])


class TestTimeout:

    def test_hung_strategy_times_out_and_next_runs(self):
        slow = Recorder("slow", delay=2.0)
        fast = Recorder("fast")
        t0 = time.time()
        result = RenderChain([slow, fast], timeout=0.2).generate(QUOTATION, [])
        assert result["strategy"] == "fast"
        assert time.time() - t0 < 1.5
        assert "TimeoutError" in result["attempts"][0]["error"]


class TestExhaustion:

    def test_all_fail_raises(self):
        chain = RenderChain([Recorder("a", error=ValueError("x")),
                             Recorder("b", available=False)])
        with pytest.raises(PDFGenerationFailed) as exc:
            chain.generate(QUOTATION, [])
        assert str(exc.value) == "PDF generation failed"
        assert [a["strategy"] for a in exc.value.attempts] == ["a", "b"]

    def test_error_message_independent_of_causes(self):
        first = RenderChain([Recorder("a", error=MemoryError())])
        second = RenderChain([Recorder("x", available=False),
                              Recorder("y", result=b"garbage")])
        messages = []
        for chain in (first, second):
            with pytest.raises(PDFGenerationFailed) as exc:
                chain.generate(QUOTATION, [])
            messages.append(str(exc.value))
        assert messages[0] == messages[1] == "PDF generation failed"


class TestCapabilities:

    def test_report(self):
        chain = RenderChain([Recorder("a"), Recorder("b", available=False)])
        report = chain.capabilities()
        assert report[0] == {"strategy": "a", "available": True, "reason": ""}
        assert report[1]["available"] is False
        assert report[1]["reason"] == "b missing"

    def test_raising_capability_reported_unavailable(self):
        class Broken(PDFStrategy):
            name = "broken"

            def capability(self):
                raise RuntimeError("boom")

        assert RenderChain([Broken()]).capabilities()[0]["available"] is False
