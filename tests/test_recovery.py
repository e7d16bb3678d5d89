from startup_wrapper.local.database import RecoveryOutcome, recover_database

from .conftest import WORKFLOW_ROWS, read_workflows


class CheckpointSpy:
    def __init__(self, result: bool):
        self.result = result
        self.calls = []

    def __call__(self, db_path):
        self.calls.append(db_path)
        return self.result


def test_no_database_touches_nothing(db_files, data_dir):
    spy = CheckpointSpy(True)
    outcome = recover_database(db_files, settle_delay=0, checkpoint_fn=spy)

    assert outcome is RecoveryOutcome.NO_DATABASE
    assert spy.calls == []
    assert list(data_dir.iterdir()) == []


def test_clean_database_is_not_checkpointed(healthy_db):
    spy = CheckpointSpy(True)
    outcome = recover_database(healthy_db, settle_delay=0, checkpoint_fn=spy)

    assert outcome is RecoveryOutcome.CLEAN
    assert spy.calls == []


def test_leftover_wal_is_checkpointed(crashed_db):
    outcome = recover_database(crashed_db, settle_delay=0)

    assert outcome is RecoveryOutcome.RECOVERED
    assert not crashed_db.has_wal() or crashed_db.size(crashed_db.wal_path) == 0
    crashed_db.remove_sidecars()
    assert read_workflows(crashed_db.db_path) == WORKFLOW_ROWS


def test_leftover_shm_alone_triggers_checkpoint(healthy_db):
    healthy_db.shm_path.write_bytes(b"\x00" * 32768)
    spy = CheckpointSpy(True)

    outcome = recover_database(healthy_db, settle_delay=0, checkpoint_fn=spy)

    assert outcome is RecoveryOutcome.RECOVERED
    assert spy.calls == [healthy_db.db_path]


def test_failed_checkpoint_discards_sidecars_and_settles(crashed_db):
    crashed_db.shm_path.write_bytes(b"\x00" * 32768)
    spy = CheckpointSpy(False)
    sleeps = []

    outcome = recover_database(crashed_db, settle_delay=2, checkpoint_fn=spy, sleep=sleeps.append)

    assert outcome is RecoveryOutcome.DISCARDED
    assert spy.calls == [crashed_db.db_path]
    assert not crashed_db.has_wal()
    assert not crashed_db.has_shm()
    assert crashed_db.exists()
    assert sleeps == [2]


def test_unreadable_database_is_discarded(corrupt_db):
    outcome = recover_database(corrupt_db, settle_delay=0)

    assert outcome is RecoveryOutcome.DISCARDED
    assert not corrupt_db.has_wal()
    assert not corrupt_db.has_shm()
