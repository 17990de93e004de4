from datetime import datetime

from conflicts import CONFLICT_MESSAGES, check_open_conflict
from enums import ConflictCode, StoppageCategory, StoppageType
from models import StoppageEvent
from repository import StoppageRepository


def _event(machine_id: int, end_time=None) -> StoppageEvent:
    return StoppageEvent(
        tenant_id="tenant-a",
        machine_id=machine_id,
        start_time=datetime(2026, 10, 19, 8, 0),
        end_time=end_time,
        reason="Jam",
        type=StoppageType.OPERATIONAL,
        category=StoppageCategory.MATERIAL_SHORTAGE,
    )


def test_no_open_event_is_ok(db, machine_id) -> None:
    repo = StoppageRepository(db, "tenant-a")
    repo.add(_event(machine_id, end_time=datetime(2026, 10, 19, 9, 0)))

    check = check_open_conflict(repo, machine_id, ConflictCode.ALREADY_OPEN)

    assert check.ok
    assert check.blocking is None
    assert not check.overridden


def test_open_event_blocks_without_override(db, machine_id) -> None:
    repo = StoppageRepository(db, "tenant-a")
    blocking = repo.add(_event(machine_id))

    check = check_open_conflict(repo, machine_id, ConflictCode.ALREADY_OPEN)

    assert not check.ok
    assert check.conflict.conflict_code == ConflictCode.ALREADY_OPEN
    assert check.conflict.blocking_event_id == blocking.id
    assert check.conflict.message == CONFLICT_MESSAGES[ConflictCode.ALREADY_OPEN]


def test_override_permits_and_is_reported(db, machine_id) -> None:
    repo = StoppageRepository(db, "tenant-a")
    repo.add(_event(machine_id))

    check = check_open_conflict(repo, machine_id, ConflictCode.ALREADY_OPEN, override=True)

    assert check.ok
    assert check.overridden


def test_reopened_event_is_excluded(db, machine_id) -> None:
    repo = StoppageRepository(db, "tenant-a")
    own = repo.add(_event(machine_id))

    check = check_open_conflict(
        repo, machine_id, ConflictCode.OTHER_OPEN, exclude_event_id=own.id
    )

    assert check.ok


def test_reopen_conflict_uses_other_open_code(db, machine_id) -> None:
    repo = StoppageRepository(db, "tenant-a")
    repo.add(_event(machine_id))
    closed = repo.add(_event(machine_id, end_time=datetime(2026, 10, 19, 9, 0)))

    check = check_open_conflict(
        repo, machine_id, ConflictCode.OTHER_OPEN, exclude_event_id=closed.id
    )

    assert check.conflict.code == "OTHER_OPEN"


def test_other_machines_do_not_block(db, machine_id, other_machine_id) -> None:
    repo = StoppageRepository(db, "tenant-a")
    repo.add(_event(other_machine_id))

    assert check_open_conflict(repo, machine_id, ConflictCode.ALREADY_OPEN).ok
