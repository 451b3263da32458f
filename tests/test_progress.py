from visual_search.progress import Progress


def test_steps_are_ordered_and_observable():
    progress = Progress()
    events = []
    progress.subscribe(lambda: events.append([s.to_dict()["message"] for s in progress.steps]))

    fetch = progress.step("Fetching articles: 0/10")
    embed = progress.step("Embedding")
    fetch.set_message("Fetching articles: 10/10")
    fetch.complete()

    assert [s.message for s in progress.steps] == ["Fetching articles: 10/10", "Embedding"]
    assert fetch.is_complete and not embed.is_complete
    assert len(events) == 4
    assert progress.to_list()[0]["isComplete"] is True


def test_reset_detaches_stale_steps():
    progress = Progress()
    old = progress.step("old")
    progress.reset()
    notified = []
    progress.subscribe(lambda: notified.append(True))

    old.complete()
    old.set_message("changed")

    assert progress.steps == []
    assert not old.is_attached
    assert not old.is_complete
    assert old.message == "old"
    assert notified == []


def test_unsubscribe_and_failing_observer():
    progress = Progress()
    calls = []

    def broken():
        raise RuntimeError("observer bug")

    progress.subscribe(broken)
    unsubscribe = progress.subscribe(lambda: calls.append(1))

    progress.step("a")
    unsubscribe()
    progress.step("b")

    assert calls == [1]


def test_step_ids_are_unique():
    progress = Progress()
    ids = {progress.step(str(i)).id for i in range(5)}
    assert len(ids) == 5
