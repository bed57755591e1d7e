"""
Tests for deterministic fault injection.
"""

import threading

import pytest

from chaos_testing import FaultInjector, FaultPoint
from core.config import IngestConfig
from core.exceptions import InjectedFailureError


class TestFaultInjector:
    """Test when faults fire."""

    def test_no_request_no_fault(self):
        injector = FaultInjector()
        injector.check(FaultPoint.NORMALIZED_INSERT)
        assert injector.injected_count == 0

    def test_requested_fault_fires(self):
        injector = FaultInjector()

        with pytest.raises(InjectedFailureError) as exc_info:
            injector.check(FaultPoint.NORMALIZED_INSERT, requested=True)

        assert exc_info.value.message == "Simulated DB failure"
        assert injector.injected_count == 1

    def test_disabled_ignores_request(self):
        injector = FaultInjector(enabled=False)
        injector.check(FaultPoint.NORMALIZED_INSERT, requested=True)
        assert injector.injected_count == 0

    def test_force_failure_always_fires(self):
        injector = FaultInjector(enabled=False, force_failure=True)
        assert injector.should_fail(requested=False) is True

    def test_from_config(self):
        injector = FaultInjector.from_config(IngestConfig(fault_injection_enabled=False))
        assert injector.should_fail(requested=True) is False

    def test_count_is_exact_across_threads(self):
        injector = FaultInjector()
        per_thread = 200

        def fire():
            for _ in range(per_thread):
                try:
                    injector.check(FaultPoint.NORMALIZED_INSERT, requested=True)
                except InjectedFailureError:
                    pass

        threads = [threading.Thread(target=fire) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert injector.injected_count == 8 * per_thread
