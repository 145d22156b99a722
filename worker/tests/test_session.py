import threading

import pytest

from adwaste.core import session as session_mod
from adwaste.core.session import (
    DeviceMismatch,
    ScrapeCancelled,
    ScrapeSession,
    SessionClosed,
    SessionError,
    TraversalTimeout,
)

URL = "http://www.google.com/search?q=train"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/67.0.3396.87 Safari/537.36"
MOBILE_UA = "Mozilla/5.0 (Android 7.0; Mobile; rv:54.0) Gecko/54.0 Firefox/54.0"


def test_start_records_request_and_device():
    session = ScrapeSession("train")
    assert session.start(URL, DESKTOP_UA) == "desktop"
    session.complete()

    result = session.result
    assert result.url == URL
    assert result.user_agent == DESKTOP_UA
    assert result.device == "desktop"


def test_start_with_forced_mobile():
    session = ScrapeSession("train", device_override="mobile")
    assert session.start(URL, MOBILE_UA) == "mobile"


@pytest.mark.parametrize(
    "forced,user_agent",
    [("mobile", DESKTOP_UA), ("desktop", MOBILE_UA), (None, MOBILE_UA)],
)
def test_device_mismatch_aborts_session(forced, user_agent):
    session = ScrapeSession("train", device_override=forced)

    with pytest.raises(DeviceMismatch) as excinfo:
        session.start(URL, user_agent)

    assert excinfo.value.user_agent == user_agent
    assert excinfo.value.configured == forced
    assert session.state == session_mod.CANCELLED
    with pytest.raises(SessionClosed):
        session.append_sea("www.oui.sncf", "span", "www.oui.sncf")


def test_positions_are_sequential_per_bucket():
    session = ScrapeSession("train")
    session.start(URL, DESKTOP_UA)
    for domain in ("a.com", "b.com", "c.com"):
        session.append_sea(domain, "span", domain)
    for domain in ("d.com", "e.com"):
        session.append_seo(domain, "div[id=ires]", domain)
    unranked = session.append_unranked("f.com", "span", "f.com")
    session.complete()

    result = session.result
    assert [entry.position for entry in result.sea] == [0, 1, 2]
    assert [entry.position for entry in result.seo] == [0, 1]
    assert unranked.position == -1


def test_append_before_start_or_after_complete_is_rejected():
    session = ScrapeSession("train")
    with pytest.raises(SessionClosed):
        session.append_seo("x.com", "div[id=ires]", "x.com")

    session.start(URL, DESKTOP_UA)
    session.complete()
    with pytest.raises(SessionClosed):
        session.append_seo("x.com", "div[id=ires]", "x.com")


def test_result_is_not_readable_while_open():
    session = ScrapeSession("train")
    session.start(URL, DESKTOP_UA)

    with pytest.raises(SessionError):
        session.result


def test_concurrent_appends_keep_positions_unique():
    session = ScrapeSession("train")
    session.start(URL, DESKTOP_UA)

    def worker():
        for _ in range(50):
            session.append_seo("x.com", "div[id=ires]", "x.com")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    session.complete()

    assert [entry.position for entry in session.result.seo] == list(range(400))


def test_wait_returns_result_completed_from_another_thread():
    session = ScrapeSession("train")
    session.start(URL, DESKTOP_UA)

    def traverse():
        session.append_sea("www.oui.sncf", "span", "www.oui.sncf")
        session.complete()

    threading.Thread(target=traverse).start()
    result = session.wait(timeout=5)

    assert len(result.sea) == 1


def test_wait_times_out_and_discards_partial_results():
    session = ScrapeSession("train")
    session.start(URL, DESKTOP_UA)
    session.append_sea("www.oui.sncf", "span", "www.oui.sncf")

    with pytest.raises(TraversalTimeout):
        session.wait(timeout=0.05)

    assert session.state == session_mod.CANCELLED
    with pytest.raises(SessionClosed):
        session.append_sea("www.oui.sncf", "span", "www.oui.sncf")


def test_wait_honours_cancellation_token():
    session = ScrapeSession("train")
    session.start(URL, DESKTOP_UA)
    cancel = threading.Event()
    threading.Timer(0.05, cancel.set).start()

    with pytest.raises(ScrapeCancelled):
        session.wait(timeout=5, cancel=cancel)

    assert session.state == session_mod.CANCELLED


def test_complete_is_idempotent_and_cancel_after_complete_is_noop():
    session = ScrapeSession("train")
    session.start(URL, DESKTOP_UA)
    session.append_seo("x.com", "div[id=ires]", "x.com")
    session.complete()
    session.complete()
    session.cancel()

    assert session.state == session_mod.COMPLETE
    assert len(session.wait(timeout=0.01).seo) == 1
