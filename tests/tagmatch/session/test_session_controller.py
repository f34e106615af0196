import pytest

from tagmatch.session.errors import (
    FileOpenError,
    IndexOutOfRange,
    PreconditionFailed,
    SearchUnavailable,
)
from tagmatch.session.models import SessionPolicy

A = "/music/A.m4a"
B = "/music/B.m4a"
C = "/music/C.m4a"


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------


def test_two_file_session_from_search_to_commit(make_controller, candidate):
    x, y, z = candidate("x"), candidate("y"), candidate("z")
    ctl, store, catalog = make_controller([A, B], {"Foo": [x, y], "Bar": [z]})

    ctl.set_query("Foo")
    assert ctl.run_search() == [x, y]

    chosen = ctl.select_candidate(1)
    assert chosen.key == y.key and chosen.enriched
    assert ctl.can_go_next() is True

    # B is only opened once we navigate to it
    assert store.opened == [A]
    assert ctl.go_next() is True
    assert store.opened == [A, B]
    assert ctl.current_file().path == B

    # default query for B is its file name; nothing matches
    assert ctl.run_search() == []
    assert catalog.search_calls[-1] == ("B", 10)
    assert ctl.can_commit() is False

    ctl.set_query("Bar")
    ctl.run_search()
    ctl.select_candidate(0)
    assert ctl.can_commit() is True

    report = ctl.commit()
    assert report.ok
    assert report.succeeded == [A, B]
    assert [c.key for c in store.handles[A].writes] == [y.key]
    assert [c.key for c in store.handles[B].writes] == [z.key]


def test_commit_before_every_file_is_matched_writes_nothing(make_controller, candidate):
    ctl, store, _ = make_controller([A, B], {"A": [candidate("x")]})
    ctl.run_search()
    ctl.select_candidate(0)
    assert ctl.can_commit() is False

    with pytest.raises(PreconditionFailed):
        ctl.commit()
    assert store.handles[A].writes == []


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------


def test_can_go_next_requires_selection(make_controller, candidate):
    ctl, _, _ = make_controller([A, B], {"A": [candidate("x")]})
    ctl.current_file()
    assert ctl.can_go_next() is False
    ctl.run_search()
    assert ctl.can_go_next() is False
    ctl.select_candidate(0)
    assert ctl.can_go_next() is True


def test_can_go_next_false_at_last_index_even_with_selection(make_controller, candidate):
    ctl, _, _ = make_controller([A], {"A": [candidate("x")]})
    ctl.run_search()
    ctl.select_candidate(0)
    assert ctl.can_go_next() is False
    assert ctl.can_commit() is True


def test_can_go_previous_depends_only_on_position(make_controller, candidate):
    ctl, _, _ = make_controller([A, B], {"A": [candidate("x")]})
    assert ctl.can_go_previous() is False
    ctl.run_search()
    ctl.select_candidate(0)
    ctl.go_next()
    # B has no selection, going back is still allowed
    assert ctl.can_go_previous() is True
    assert ctl.go_previous() is True
    assert ctl.session.position == 0


def test_navigation_precondition_violations_are_no_ops(make_controller):
    ctl, _, _ = make_controller([A, B])
    assert ctl.go_previous() is False
    assert ctl.go_next() is False
    assert ctl.session.position == 0


def test_can_commit_checks_unvisited_files(make_controller, candidate):
    ctl, _, _ = make_controller([A, B, C], {"A": [candidate("x")], "B": [candidate("y")]})
    ctl.run_search()
    ctl.select_candidate(0)
    ctl.go_next()
    ctl.run_search()
    ctl.select_candidate(0)
    # every visited file is matched, C was never opened
    assert all(s.has_selection for s in ctl.session.file_states())
    assert ctl.can_commit() is False


def test_revisiting_a_file_keeps_its_cached_state(make_controller, candidate):
    ctl, store, catalog = make_controller([A, B], {"A": [candidate("x")]})
    ctl.run_search()
    ctl.select_candidate(0)
    ctl.go_next()
    ctl.go_previous()

    state = ctl.current_file()
    assert state.selected_index == 0
    assert len(state.candidates) == 1
    assert store.opened == [A, B]
    assert len(catalog.search_calls) == 1


# ---------------------------------------------------------------------------
# File open failures
# ---------------------------------------------------------------------------


def test_unopenable_next_file_does_not_move_position(make_controller, candidate):
    ctl, _, _ = make_controller([A, B], {"A": [candidate("x")]}, unopenable={B})
    ctl.run_search()
    ctl.select_candidate(0)

    with pytest.raises(FileOpenError):
        ctl.go_next()
    assert ctl.session.position == 0
    assert ctl.session.get(B) is None
    assert ctl.can_commit() is False


def test_unopenable_first_file_surfaces_from_current_file(make_controller):
    ctl, _, _ = make_controller([A], unopenable={A})
    with pytest.raises(FileOpenError):
        ctl.current_file()
    assert ctl.can_go_next() is False
    assert ctl.can_commit() is False


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def test_set_query_does_not_search(make_controller):
    ctl, _, catalog = make_controller([A])
    ctl.set_query("Foo")
    assert catalog.search_calls == []
    assert ctl.query_text() == "Foo"


def test_query_text_defaults_to_file_name(make_controller):
    ctl, _, _ = make_controller(["/music/Some_Song.m4a"])
    assert ctl.current_file().query is None
    assert ctl.query_text() == "Some Song"


def test_search_unavailable_keeps_previous_candidates(make_controller, candidate):
    x = candidate("x")
    ctl, _, catalog = make_controller([A], {"A": [x]})
    ctl.run_search()

    catalog.fail_search = ConnectionError("offline")
    assert ctl.run_search() == [x]
    assert isinstance(ctl.current_file().search_error, SearchUnavailable)

    catalog.fail_search = None
    ctl.run_search()
    assert ctl.current_file().search_error is None


def test_stale_search_response_is_discarded(make_controller, candidate):
    old, new = candidate("old"), candidate("new")
    ctl, _, _ = make_controller([A])

    first = ctl.begin_search()
    second = ctl.begin_search()
    assert second.seq > first.seq

    assert ctl.apply_search(second, [new]) is True
    assert ctl.apply_search(first, [old]) is False
    assert ctl.current_file().candidates == [new]


def test_older_response_arriving_first_is_also_discarded(make_controller, candidate):
    ctl, _, _ = make_controller([A])
    first = ctl.begin_search()
    second = ctl.begin_search()

    assert ctl.apply_search(first, [candidate("old")]) is False
    assert ctl.current_file().candidates == []
    assert ctl.apply_search(second, [candidate("new")]) is True


def test_search_tags_are_per_file(make_controller, candidate):
    ctl, _, _ = make_controller([A, B], {"A": [candidate("x")]})
    ctl.run_search()
    ctl.select_candidate(0)
    ticket_a = ctl.begin_search()
    ctl.go_next()
    ctl.begin_search()

    # a newer search on B does not invalidate A's latest ticket
    assert ctl.apply_search(ticket_a, [candidate("late")]) is True
    assert ctl.session.get(A).candidates[0].id == "late"


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_select_out_of_range_raises_and_keeps_state(make_controller, candidate):
    ctl, _, _ = make_controller([A], {"A": [candidate("x")]})
    ctl.run_search()

    for bad in (-1, 1, 5):
        with pytest.raises(IndexOutOfRange):
            ctl.select_candidate(bad)
    state = ctl.current_file()
    assert state.selected_candidate is None
    assert state.selected_index is None


def test_index_out_of_range_is_an_index_error(make_controller):
    ctl, _, _ = make_controller([A])
    with pytest.raises(IndexError):
        ctl.select_candidate(0)


def test_select_is_idempotent(make_controller, candidate):
    ctl, _, catalog = make_controller([A], {"A": [candidate("x"), candidate("y")]})
    ctl.run_search()

    first = ctl.select_candidate(1)
    state = ctl.current_file()
    snapshot = (state.selected_candidate, state.selected_index)

    second = ctl.select_candidate(1)
    assert second is first
    assert (state.selected_candidate, state.selected_index) == snapshot
    assert state.candidates[1] is state.selected_candidate
    assert catalog.lookup_calls == ["y"]


def test_selection_stores_enriched_candidate_in_place(make_controller, candidate):
    ctl, _, _ = make_controller([A], {"A": [candidate("x")]})
    ctl.run_search()
    chosen = ctl.select_candidate(0)

    state = ctl.current_file()
    assert chosen.genre == "Pop"
    assert state.candidates[0] is chosen
    assert state.enrich_error is None


def test_enrichment_failure_does_not_block_selection(make_controller, candidate):
    x = candidate("x")
    ctl, _, catalog = make_controller([A, B], {"A": [x]})
    catalog.fail_lookup = TimeoutError("slow")
    ctl.run_search()

    chosen = ctl.select_candidate(0)
    state = ctl.current_file()
    assert chosen is x
    assert chosen.enriched is False
    assert isinstance(state.enrich_error, TimeoutError)
    assert ctl.can_go_next() is True


# ---------------------------------------------------------------------------
# Re-search with an existing selection
# ---------------------------------------------------------------------------


def test_selection_survives_a_re_search(make_controller, candidate):
    y = candidate("y")
    ctl, _, _ = make_controller([A, B], {"Foo": [candidate("x"), y], "Other": [candidate("z")]})
    ctl.set_query("Foo")
    ctl.run_search()
    chosen = ctl.select_candidate(1)

    ctl.set_query("Other")
    assert [c.id for c in ctl.run_search()] == ["z"]

    state = ctl.current_file()
    assert state.selected_candidate is chosen
    assert state.selection_in_results is False
    assert state.selected_row is None
    assert ctl.can_go_next() is True


def test_re_search_repoints_index_when_selection_is_still_listed(make_controller, candidate):
    ctl, _, _ = make_controller(
        [A], {"Foo": [candidate("x"), candidate("y")], "Foo 2": [candidate("y"), candidate("w")]}
    )
    ctl.set_query("Foo")
    ctl.run_search()
    chosen = ctl.select_candidate(1)

    ctl.set_query("Foo 2")
    ctl.run_search()
    state = ctl.current_file()
    assert state.selected_index == 0
    assert state.candidates[0] is chosen
    assert state.selection_in_results is True


def test_policy_can_clear_a_stale_selection(make_controller, candidate):
    ctl, _, _ = make_controller(
        [A],
        {"Foo": [candidate("x")], "Other": [candidate("z")]},
        policy=SessionPolicy(clear_stale_selection=True),
    )
    ctl.set_query("Foo")
    ctl.run_search()
    ctl.select_candidate(0)

    ctl.set_query("Other")
    ctl.run_search()
    state = ctl.current_file()
    assert state.selected_candidate is None
    assert state.selected_index is None
    assert ctl.can_commit() is False


# ---------------------------------------------------------------------------
# Rendering accessors
# ---------------------------------------------------------------------------


def test_position_label(make_controller, candidate):
    ctl, _, _ = make_controller([A, B], {"A": [candidate("x")]})
    assert ctl.position_label() == "File 1 of 2 (A.m4a)"
    ctl.run_search()
    ctl.select_candidate(0)
    ctl.go_next()
    assert ctl.position_label() == "File 2 of 2 (B.m4a)"
