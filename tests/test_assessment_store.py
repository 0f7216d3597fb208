import time

import pytest

from fitassess.models.assessment import Assessment
from fitassess.utils import assessment_store
from fitassess.utils.assessment_store import DeleteResult


def test_save_creates_then_updates_single_record(db, users):
    first = assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"age": 40}, "draft")
    second = assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"age": 41}, "complete")

    assert first.id == second.id
    assert db.query(Assessment).count() == 1
    assert second.data == {"age": 41}
    assert second.status == "complete"
    assert second.updated_at >= second.created_at


def test_list_never_shows_duplicate_triples(db, users):
    for age in (30, 31, 32):
        assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"age": age}, "draft")
    assessment_store.save_assessment(db, "trainer-1", "client-2", "par_q_plus", {"age": 50}, "draft")

    records = assessment_store.list_assessments(db, "trainer-1")
    triples = [(r.trainer_id, r.client_id, r.type) for r in records]
    assert len(triples) == len(set(triples)) == 2


def test_list_is_most_recently_updated_first(db, users):
    assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"a": 1}, "draft")
    time.sleep(0.01)
    assessment_store.save_assessment(db, "trainer-1", "client-2", "par_q_plus", {"a": 1}, "draft")
    time.sleep(0.01)
    assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"a": 2}, "draft")

    records = assessment_store.list_assessments(db, "trainer-1")
    assert [r.client_id for r in records] == ["client-1", "client-2"]
    assert assessment_store.list_assessments(db, "trainer-2") == []


def test_load_is_scoped_to_trainer(db, users):
    assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"age": 40}, "draft")
    assert assessment_store.load_assessment(db, "trainer-1", "client-1", "par_q_plus").data == {"age": 40}
    assert assessment_store.load_assessment(db, "trainer-2", "client-1", "par_q_plus") is None
    assert assessment_store.load_assessment(db, "trainer-1", "client-1", "body_composition") is None


@pytest.mark.parametrize("kwargs", [
    {"trainer_id": ""},
    {"client_id": ""},
    {"type_": ""},
    {"status": "archived"},
])
def test_save_rejects_bad_input(db, kwargs):
    args = {"trainer_id": "trainer-1", "client_id": "client-1", "type_": "par_q_plus", "data": {}, "status": "draft"}
    args.update(kwargs)
    with pytest.raises(ValueError):
        assessment_store.save_assessment(db, **args)


def test_delete_checks_ownership(db, users):
    record = assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"age": 40}, "draft")

    assert assessment_store.delete_assessment(db, record.id, "trainer-2") == DeleteResult.FORBIDDEN
    assert db.query(Assessment).count() == 1

    assert assessment_store.delete_assessment(db, "missing-id", "trainer-1") == DeleteResult.NOT_FOUND
    assert assessment_store.delete_assessment(db, record.id, "trainer-1") == DeleteResult.DELETED
    assert db.query(Assessment).count() == 0
    assert assessment_store.delete_assessment(db, record.id, "trainer-1") == DeleteResult.NOT_FOUND


def test_store_wrapper_returns_detached_records(store, users):
    saved = store.save_assessment("trainer-1", "client-1", "par_q_plus", {"age": 40}, "draft")
    loaded = store.load_assessment("trainer-1", "client-1", "par_q_plus")
    assert loaded.id == saved.id
    assert loaded.data == {"age": 40}
    assert [r.id for r in store.list_assessments("trainer-1")] == [saved.id]
    assert store.delete_assessment(saved.id, "trainer-1") == DeleteResult.DELETED
    assert store.load_assessment("trainer-1", "client-1", "par_q_plus") is None


def test_draft_never_downgrades_complete(db, users):
    assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"age": 40}, "complete")
    record = assessment_store.save_assessment(db, "trainer-1", "client-1", "par_q_plus", {"age": 41}, "draft")
    assert record.status == "complete"
    assert record.data == {"age": 41}


def test_list_and_load_carry_client(store, users):
    store.save_assessment("trainer-1", "client-1", "par_q_plus", {"age": 40}, "draft")
    # записи отсоединены от сессии, поэтому client должен быть подгружен заранее
    listed = store.list_assessments("trainer-1")
    assert listed[0].client.email == "anna@example.com"
    loaded = store.load_assessment("trainer-1", "client-1", "par_q_plus")
    assert loaded.client.id == "client-1"
