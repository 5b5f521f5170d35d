import json

import pytest


def test_upsert_replaces_existing_row(db_session):
    from backend.app.models.embedding import UserEmbedding
    from backend.app.services.embedding_store import EmbeddingStore

    store = EmbeddingStore(db_session, dimensions=3)
    store.upsert("u1", [1.0, 0.0, 0.0], "h1")
    store.upsert("u1", [0.0, 1.0, 0.0], "h2")

    rows = db_session.query(UserEmbedding).filter(UserEmbedding.user_id == "u1").all()
    assert len(rows) == 1
    assert json.loads(rows[0].vector_json) == [0.0, 1.0, 0.0]
    assert rows[0].profile_hash == "h2"
    assert rows[0].dim == 3
    assert store.vector("u1") == [0.0, 1.0, 0.0]


def test_get_and_fingerprint_missing_user(db_session):
    from backend.app.services.embedding_store import EmbeddingStore

    store = EmbeddingStore(db_session, dimensions=3)
    assert store.get("nobody") is None
    assert store.get_fingerprint("nobody") is None
    assert store.vector("nobody") is None


def test_get_fingerprint(db_session):
    from backend.app.services.embedding_store import EmbeddingStore

    store = EmbeddingStore(db_session, dimensions=2)
    store.upsert("u1", [0.6, 0.8], "abc")
    assert store.get_fingerprint("u1") == "abc"


def test_list_all_except_excludes_requester(db_session):
    from backend.app.services.embedding_store import EmbeddingStore

    store = EmbeddingStore(db_session, dimensions=2)
    store.upsert("a", [1.0, 0.0], "ha")
    store.upsert("b", [0.0, 1.0], "hb")
    store.upsert("c", [0.6, 0.8], "hc")

    others = store.list_all_except("a")
    assert [uid for uid, _ in others] == ["b", "c"]
    assert others[1][1] == [0.6, 0.8]


def test_upsert_rejects_wrong_dimension(db_session):
    from backend.app.services.embedding_store import EmbeddingStore
    from backend.app.utils.error_handlers import StoreError

    store = EmbeddingStore(db_session, dimensions=3)
    with pytest.raises(StoreError):
        store.upsert("u1", [1.0, 0.0], "h")
    assert store.get("u1") is None


def test_mismatched_stored_vector_is_integrity_error(db_session):
    from backend.app.models.embedding import UserEmbedding
    from backend.app.services.embedding_store import EmbeddingStore
    from backend.app.utils.error_handlers import StoreError

    db_session.add(UserEmbedding(user_id="legacy", dim=2, vector_json="[1.0, 0.0]", profile_hash="x"))
    db_session.commit()

    store = EmbeddingStore(db_session, dimensions=3)
    with pytest.raises(StoreError):
        store.list_all_except("someone-else")
    with pytest.raises(StoreError):
        store.vector("legacy")
