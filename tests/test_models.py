import dataclasses
import pytest
from sstparse.models import (
    CompletionStatus,
    DeployedResource,
    DeployResult,
    DiffAction,
    DiffResult,
    Operation,
    PlannedChange,
    RemoveResult,
    ResourceStatus,
    StageResult,
)


def test_result_defaults():
    r = DeployResult(success=True, stage="dev", exit_code=0,
                     completion_status=CompletionStatus.COMPLETE)
    assert r.operation == Operation.DEPLOY
    assert r.app == "unknown"
    assert r.truncated is False
    assert r.error is None
    assert r.permalink is None
    assert r.resources == ()
    assert r.urls == ()


def test_operation_fixed_per_result_type():
    kwargs = dict(success=True, stage="dev", exit_code=0,
                  completion_status=CompletionStatus.COMPLETE)
    assert DiffResult(**kwargs).operation == Operation.DIFF
    assert RemoveResult(**kwargs).operation == Operation.REMOVE
    assert StageResult(**kwargs).operation == Operation.STAGE


def test_results_are_immutable():
    r = RemoveResult(success=True, stage="dev", exit_code=0,
                     completion_status=CompletionStatus.COMPLETE)
    with pytest.raises(dataclasses.FrozenInstanceError):
        r.success = False


def test_to_dict_is_flat_json():
    r = DeployResult(
        success=True, stage="dev", exit_code=0,
        completion_status=CompletionStatus.COMPLETE,
        resource_changes=1,
        resources=(DeployedResource("Function", "f", ResourceStatus.CREATED),),
    )
    data = r.to_dict()
    assert data["operation"] == "deploy"
    assert data["completion_status"] == "complete"
    assert data["resources"] == [{"type": "Function", "name": "f", "status": "created"}]


def test_diff_action_counts():
    r = DiffResult(
        success=True, stage="dev", exit_code=0,
        completion_status=CompletionStatus.COMPLETE,
        changes=(
            PlannedChange("Function", "a", DiffAction.CREATE),
            PlannedChange("Function", "b", DiffAction.CREATE),
            PlannedChange("Api", "c", DiffAction.DELETE),
        ),
    )
    assert r.action_counts == {
        DiffAction.CREATE: 2, DiffAction.UPDATE: 0, DiffAction.DELETE: 1,
    }
