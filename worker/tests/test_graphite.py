import csv
from datetime import datetime

import pytest

from adwaste.core.config import Settings
from adwaste.vendors import graphite
from adwaste.vendors.csv_dump import CsvDump


class DummySender:
    instances = []

    def __init__(self, host, port=2003, prefix=None, timeout=5, raise_send_errors=False, **kwargs):
        self.host = host
        self.port = port
        self.prefix = prefix
        self.timeout = timeout
        self.raise_send_errors = raise_send_errors
        self.error = None
        self.sent = []
        DummySender.instances.append(self)

    def send(self, metric, value, timestamp=None):
        if self.error is not None:
            raise self.error
        self.sent.append((metric, value, timestamp))


@pytest.fixture
def sender(monkeypatch):
    DummySender.instances = []
    monkeypatch.setattr(graphite.graphyte, "Sender", DummySender)
    return DummySender


def test_graphite_sink_configures_graphyte_sender(sender):
    with graphite.GraphiteSink("carbon.local", 2003, "DT.test.desktop") as sink:
        sink.send("sea.count", 2, 1700000000)
        sink.send("waste", 1, 1700000001)

    (created,) = sender.instances
    assert (created.host, created.port, created.prefix) == ("carbon.local", 2003, "DT.test.desktop")
    assert created.timeout == graphite.REQUEST_TIMEOUT
    assert created.raise_send_errors is True
    assert created.sent == [("sea.count", 2, 1700000000), ("waste", 1, 1700000001)]


def test_graphite_sink_without_prefix(sender):
    graphite.GraphiteSink("carbon.local", 2003).send("waste", 0)

    (created,) = sender.instances
    assert created.prefix is None
    assert created.sent == [("waste", 0, None)]


@pytest.mark.parametrize("error", [ConnectionRefusedError("refused"), BrokenPipeError("broken pipe")])
def test_graphite_sink_wraps_send_errors(sender, error):
    sink = graphite.GraphiteSink("carbon.local", 2003)
    sender.instances[0].error = error

    with pytest.raises(graphite.GraphiteError) as excinfo:
        sink.send("waste", 0, 1)
    assert excinfo.value.__cause__ is error


def test_nop_sink_records_and_logs(caplog):
    sink = graphite.NopSink("DT.test.mobile")

    with caplog.at_level("INFO"):
        sink.send("seo.count", 4, 1700000000)

    assert sink.sent == [("DT.test.mobile.seo.count", 4, 1700000000)]
    assert "DT.test.mobile.seo.count=4" in " ".join(caplog.messages)


def test_make_sink_depends_on_mode(sender):
    assert isinstance(graphite.make_sink(Settings(mode="prod"), "p"), graphite.GraphiteSink)
    assert sender.instances[0].prefix == "p"
    assert isinstance(graphite.make_sink(Settings(mode=""), "p"), graphite.NopSink)


def test_csv_dump_appends_to_existing_file(tmp_path):
    path = tmp_path / "dump" / "result.csv"
    when = datetime(2018, 6, 14, 9, 30, 5)

    with CsvDump(path, "DT.test.desktop") as dump:
        dump.write("sea.www_oui_sncf", 0, when)
    with CsvDump(path, "DT.test.desktop") as dump:
        dump.write("waste", 1, when)

    with path.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows == [
        ["20180614093005", "DT.test.desktop.sea.www_oui_sncf", "0"],
        ["20180614093005", "DT.test.desktop.waste", "1"],
    ]
