import math

import pytest


def test_cosine_similarity_basic():
    from backend.app.services.semantic_similarity import cosine_similarity

    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == 1.0
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == -1.0
    assert cosine_similarity([], []) == 0.0


def test_cosine_similarity_zero_magnitude_is_zero():
    from backend.app.services.semantic_similarity import cosine_similarity

    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0
    assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0


def test_cosine_similarity_uses_shorter_length():
    from backend.app.services.semantic_similarity import cosine_similarity

    assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 5.0]) == 1.0


def test_cosine_similarity_bounds_on_normalized_vectors():
    from backend.app.services.embeddings import l2_normalize
    from backend.app.services.semantic_similarity import cosine_similarity

    vectors = [l2_normalize([math.sin(i * k + 1.0) for k in range(16)]) for i in range(10)]
    for a in vectors:
        assert cosine_similarity(a, a) == pytest.approx(1.0, abs=1e-9)
        for b in vectors:
            assert -1.0 - 1e-9 <= cosine_similarity(a, b) <= 1.0 + 1e-9


def test_rank_candidates_sorts_and_truncates():
    from backend.app.services.semantic_similarity import rank_candidates

    q = [1.0, 0.0]
    candidates = [
        ("far", [0.0, 1.0]),
        ("near", [1.0, 0.1]),
        ("mid", [1.0, 1.0]),
        ("tie", [1.0, 1.0]),
    ]
    ranked = rank_candidates(q, candidates, top_k=3)
    assert [m["user_id"] for m in ranked] == ["near", "mid", "tie"]


def _seed(db_session, make_profile, rows):
    """rows: (user_id, vector, is_mentor)"""
    from backend.app.services.embedding_store import EmbeddingStore

    store = EmbeddingStore(db_session, dimensions=2)
    for uid, vec, mentor in rows:
        make_profile(uid, is_mentor=mentor, company="Acme", skills=["Python"])
        store.upsert(uid, vec, f"h-{uid}")


def test_match_requires_embedding(db_session):
    from backend.app.services.semantic_similarity import match_profiles
    from backend.app.utils.error_handlers import NoEmbeddingError

    with pytest.raises(NoEmbeddingError) as exc:
        match_profiles(db_session, "nobody", dimensions=2)
    assert "No embedding" in exc.value.message


def test_match_with_no_other_users_is_empty(db_session, make_profile):
    from backend.app.services.semantic_similarity import match_profiles

    _seed(db_session, make_profile, [("me", [1.0, 0.0], False)])
    assert match_profiles(db_session, "me", dimensions=2) == []


def test_match_excludes_self_and_joins_profiles(db_session, make_profile):
    from backend.app.services.semantic_similarity import match_profiles

    _seed(
        db_session,
        make_profile,
        [
            ("me", [1.0, 0.0], False),
            ("a", [0.8, 0.6], True),
            ("b", [0.0, 1.0], False),
        ],
    )
    matches = match_profiles(db_session, "me", dimensions=2)
    assert [m["user_id"] for m in matches] == ["a", "b"]
    assert all(m["user_id"] != "me" for m in matches)
    assert matches[0]["similarity"] == pytest.approx(0.8)
    profile = matches[0]["profile"]
    assert profile["user_id"] == "a"
    assert profile["company"] == "Acme"
    assert profile["is_mentor"] is True
    assert set(profile) == {
        "user_id", "full_name", "company", "designation", "industry",
        "skills", "location", "is_mentor", "is_hiring", "avatar_url",
    }


def test_match_skips_embeddings_without_profile(db_session, make_profile):
    from backend.app.services.embedding_store import EmbeddingStore
    from backend.app.services.semantic_similarity import match_profiles

    _seed(db_session, make_profile, [("me", [1.0, 0.0], False), ("a", [0.0, 1.0], False)])
    EmbeddingStore(db_session, dimensions=2).upsert("orphan", [1.0, 0.0], "h")

    assert [m["user_id"] for m in match_profiles(db_session, "me", dimensions=2)] == ["a"]


def test_match_tolerates_loosely_typed_skills(db_session, make_profile):
    from backend.app.services.embedding_store import EmbeddingStore
    from backend.app.services.semantic_similarity import match_profiles

    _seed(db_session, make_profile, [("me", [1.0, 0.0], False)])
    make_profile("other", skills=["Python", 2024])
    make_profile("odd", skills="Python")
    store = EmbeddingStore(db_session, dimensions=2)
    store.upsert("other", [0.8, 0.6], "h-other")
    store.upsert("odd", [0.0, 1.0], "h-odd")

    matches = match_profiles(db_session, "me", dimensions=2)
    assert [m["user_id"] for m in matches] == ["other", "odd"]
    assert matches[0]["profile"]["skills"] == ["Python", "2024"]
    assert matches[1]["profile"]["skills"] is None


def test_match_respects_top_k(db_session, make_profile):
    from backend.app.services.semantic_similarity import match_profiles

    rows = [("me", [1.0, 0.0], False)]
    rows += [(f"u{i:02d}", [1.0, i / 20.0], False) for i in range(15)]
    _seed(db_session, make_profile, rows)

    matches = match_profiles(db_session, "me", top_k=10, dimensions=2)
    assert len(matches) == 10
    assert matches[0]["user_id"] == "u00"
    sims = [m["similarity"] for m in matches]
    assert sims == sorted(sims, reverse=True)


def test_mentor_filter_runs_after_truncation(db_session, make_profile):
    """Mentors ranked below the top 10 are not pulled up by the mentor filter."""
    from backend.app.services.semantic_similarity import match_profiles

    rows = [("me", [1.0, 0.0], False)]
    rows += [(f"peer{i:02d}", [1.0, i / 100.0], False) for i in range(10)]
    rows += [("mentor-far", [0.0, 1.0], True)]
    _seed(db_session, make_profile, rows)

    assert match_profiles(db_session, "me", target_role="mentor", prefilter_role=False, dimensions=2) == []
    unfiltered = match_profiles(db_session, "me", dimensions=2)
    assert "mentor-far" not in [m["user_id"] for m in unfiltered]


def test_mentor_prefilter_finds_lower_ranked_mentors(db_session, make_profile):
    from backend.app.services.semantic_similarity import match_profiles

    rows = [("me", [1.0, 0.0], False)]
    rows += [(f"peer{i:02d}", [1.0, i / 100.0], False) for i in range(10)]
    rows += [("mentor-far", [0.0, 1.0], True)]
    _seed(db_session, make_profile, rows)

    matches = match_profiles(db_session, "me", target_role="mentor", prefilter_role=True, dimensions=2)
    assert [m["user_id"] for m in matches] == ["mentor-far"]


def test_unknown_target_role_applies_no_filter(db_session, make_profile):
    from backend.app.services.semantic_similarity import match_profiles

    _seed(db_session, make_profile, [("me", [1.0, 0.0], False), ("a", [1.0, 0.0], False)])
    assert len(match_profiles(db_session, "me", target_role="alumni", dimensions=2)) == 1
