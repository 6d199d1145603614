"""Tests for the Execution record and ExecutionContext."""

from dockrun.core.errors import StartError
from dockrun.execution.context import Execution, ExecutionContext
from dockrun.execution.jobs import BareJob
from dockrun.execution.models import ExecutionOutcome


class TestExecution:
    def test_initial_state(self):
        execution = Execution()
        assert len(execution.id) == 12
        assert execution.running is False
        assert execution.duration is None
        assert not execution.failed

    def test_start_stop(self):
        execution = Execution()
        execution.start()
        assert execution.running is True
        assert execution.started_at.tzinfo is not None
        execution.stop()
        assert execution.running is False
        assert execution.duration.total_seconds() >= 0

    def test_stop_with_error(self):
        execution = Execution()
        execution.start()
        execution.stop(StartError("start failed").with_context(container_id="c1"))
        assert execution.failed
        data = execution.to_dict()
        assert data["error"]["error_type"] == "StartError"
        assert data["error"]["context"]["container_id"] == "c1"

    def test_to_dict_outcome(self):
        execution = Execution(outcome=ExecutionOutcome.failed_with_code(3))
        assert execution.to_dict()["outcome"] == "failed_with_code(3)"

    def test_unique_ids(self):
        assert Execution().id != Execution().id


class TestExecutionContext:
    def test_id_and_metadata(self):
        ctx = ExecutionContext(job=BareJob(name="x"))
        assert ctx.id == ctx.execution.id
        ctx.set_metadata("trigger", "manual")
        assert ctx.metadata == {"trigger": "manual"}
