"""Integration tests for the database-backed loan override table"""

from ledgerflow.domain.overrides import LoanOverrideReconciler
from ledgerflow.infrastructure.database.models import LoanOverride
from ledgerflow.infrastructure.database.repositories import DatabaseOverrideStore, LoanOverrideRepository


def test_repository_upsert_and_delete(session_factory):
    with session_factory() as db:
        repo = LoanOverrideRepository(db)
        repo.upsert("loan_1", 1500)
        repo.upsert("loan_2", 900)
        repo.upsert("loan_1", 1400)

        assert repo.get_all() == {"loan_1": 1400, "loan_2": 900}
        assert repo.delete(["loan_2", "missing"]) == 1
        assert repo.delete([]) == 0
        assert repo.get_all() == {"loan_1": 1400}


def test_repository_replace_all(session_factory):
    with session_factory() as db:
        repo = LoanOverrideRepository(db)
        repo.upsert("loan_1", 1500)
        repo.replace_all({"loan_3": 300, "loan_4": 400})
        db.commit()

    with session_factory() as db:
        assert db.query(LoanOverride).count() == 2
        assert LoanOverrideRepository(db).get_all() == {"loan_3": 300, "loan_4": 400}


def test_store_commits_single_key_writes(session_factory):
    store = DatabaseOverrideStore(session_factory)
    store.set("loan_1", 1500)
    store.set("loan_2", 900)
    store.delete("loan_2")

    # A second store over the same database sees committed writes only
    assert DatabaseOverrideStore(session_factory).get_all() == {"loan_1": 1500}


def test_overrides_survive_a_new_reconciler(session_factory, make_transaction):
    """Corrections persist across process restarts"""
    LoanOverrideReconciler(DatabaseOverrideStore(session_factory)).remember_override("loan_1", 1500)

    restarted = LoanOverrideReconciler(DatabaseOverrideStore(session_factory))
    (loan,) = restarted.apply_overrides([make_transaction("2025-06-01", 1770, group="loan", id="loan_1")])

    assert loan.amount == 1500


def test_stale_overrides_pruned_from_database(session_factory, make_transaction):
    store = DatabaseOverrideStore(session_factory)
    reconciler = LoanOverrideReconciler(store)
    reconciler.remember_override("loan_1", 1500)
    reconciler.remember_override("deleted_loan", 800)

    reconciler.apply_overrides([make_transaction("2025-06-01", 1770, group="loan", id="loan_1")])

    assert store.get_all() == {"loan_1": 1500}


def test_replace_overrides_sanitizes_before_persisting(session_factory):
    reconciler = LoanOverrideReconciler(DatabaseOverrideStore(session_factory))
    reconciler.remember_override("old", 10)

    kept = reconciler.replace_overrides({"loan_1": -1500, "": 5, "loan_2": "abc", "loan_3": float("inf")})

    assert kept == {"loan_1": 1500}
    assert reconciler.get_overrides() == {"loan_1": 1500}
