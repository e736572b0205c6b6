from pickem.data_models.request_state import RequestStatus, RequestTracker


def test_newest_request_wins_and_stale_response_is_discarded():
    tracker = RequestTracker()
    first = tracker.begin({'page': 1})
    second = tracker.begin({'page': 2})

    assert tracker.resolve(second, "page two") is True
    assert tracker.resolve(first, "page one") is False

    assert tracker.state.status is RequestStatus.SUCCESS
    assert tracker.state.data == "page two"
    assert tracker.state.params == {'page': 2}


def test_superseded_request_is_recorded():
    tracker = RequestTracker()
    first = tracker.begin("a")
    tracker.begin("b")

    assert len(tracker.superseded) == 1
    assert tracker.superseded[0].request_id == first
    assert tracker.superseded[0].status is RequestStatus.SUPERSEDED


def test_settled_request_is_not_superseded():
    tracker = RequestTracker()
    first = tracker.begin()
    tracker.resolve(first, 1)
    tracker.begin()
    assert tracker.superseded == []


def test_stale_failure_does_not_overwrite_state():
    tracker = RequestTracker()
    first = tracker.begin()
    second = tracker.begin()

    assert tracker.fail(first, RuntimeError("slow")) is False
    assert tracker.state.is_loading

    error = RuntimeError("boom")
    assert tracker.fail(second, error) is True
    assert tracker.state.status is RequestStatus.FAILURE
    assert tracker.state.error is error


def test_previous_data_stays_visible_while_loading():
    tracker = RequestTracker()
    tracker.resolve(tracker.begin(), "old")
    tracker.begin()

    assert tracker.state.is_loading
    assert tracker.state.data == "old"


def test_response_applies_only_once():
    tracker = RequestTracker()
    request_id = tracker.begin()
    assert tracker.resolve(request_id, 1)
    assert not tracker.resolve(request_id, 2)
    assert tracker.state.data == 1


def test_reset_returns_to_idle():
    tracker = RequestTracker()
    tracker.begin()
    tracker.reset()
    assert tracker.state.status is RequestStatus.IDLE
