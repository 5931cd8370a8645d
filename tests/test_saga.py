"""
Tests for the saga step log and compensation table.
No platform is involved: steps are plain callables.
"""

import pytest
from unittest.mock import MagicMock

from sitepipe.services.saga import Saga, StepStatus


class TestSaga:

    def test_successful_steps_are_logged_in_order(self):
        saga = Saga("test")

        assert saga.execute("one", lambda: 1) == 1
        assert saga.execute("two", lambda: 2) == 2

        assert [s.name for s in saga.steps] == ["one", "two"]
        assert all(s.status is StepStatus.COMPLETED for s in saga.steps)
        assert saga.failed_step is None

    def test_failure_compensates_completed_steps_in_reverse(self):
        calls = []
        saga = Saga("test")
        saga.execute("one", lambda: "a", compensation=lambda r: calls.append(("undo-one", r)))
        saga.execute("two", lambda: "b", compensation=lambda r: calls.append(("undo-two", r)))

        with pytest.raises(RuntimeError, match="boom"):
            saga.execute("three", MagicMock(side_effect=RuntimeError("boom")))

        assert calls == [("undo-two", "b"), ("undo-one", "a")]
        assert saga.step("one").status is StepStatus.COMPENSATED
        assert saga.step("two").status is StepStatus.COMPENSATED
        assert saga.failed_step.name == "three"
        assert saga.failed_step.error == "boom"

    def test_compensation_failure_keeps_original_error(self):
        """A failing compensation is recorded but the step's error propagates."""
        saga = Saga("test")
        saga.execute(
            "create",
            lambda: "repo",
            compensation=MagicMock(side_effect=ConnectionError("cannot delete")),
        )

        with pytest.raises(ValueError, match="site failed"):
            saga.execute("site", MagicMock(side_effect=ValueError("site failed")))

        step = saga.step("create")
        assert step.status is StepStatus.COMPENSATION_FAILED
        assert step.compensation_error == "cannot delete"
        assert saga.compensation_failed is True

    def test_first_step_failure_needs_no_compensation(self):
        saga = Saga("test")

        with pytest.raises(KeyError):
            saga.execute("create", MagicMock(side_effect=KeyError("x")))

        assert saga.compensation_failed is False
        assert saga.steps[0].status is StepStatus.FAILED

    def test_steps_without_compensation_are_left_completed(self):
        saga = Saga("test")
        saga.execute("read", lambda: None)

        with pytest.raises(RuntimeError):
            saga.execute("write", MagicMock(side_effect=RuntimeError()))

        assert saga.step("read").status is StepStatus.COMPLETED
