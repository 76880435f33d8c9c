from treepruner.model.state import TreeSession, TreeState


def test_generate_starts_with_empty_prune_set():
    session = TreeSession()
    session.generate(3, [4, 5])
    assert session.pruned.ids == frozenset({4, 5})

    session.generate(3)
    assert len(session.pruned) == 0
    assert session.tree.seed == 3


def test_restore_and_to_state_round_trip():
    session = TreeSession()
    state = TreeState(seed=77, pruned_ids=frozenset({8, 9}))
    session.restore(state)
    assert session.to_state() == state
    assert session.state_string() == "77_p8,9"
    assert state.encode() == "77_p8,9"

