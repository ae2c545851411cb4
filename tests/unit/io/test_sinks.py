from hourlyavg.domain.record import AggregateLine
from hourlyavg.io.formatters import AggregateLineFormatter
from hourlyavg.io.sinks import BufferedTextSink
from tests.unit.helpers import CountingText


def test_sink_holds_text_until_buffer_fills():
    target = CountingText()
    sink = BufferedTextSink(target, buffer_size=10)

    sink.write_text("abcd")
    assert target.getvalue() == ""

    sink.write_text("efghij")
    assert target.getvalue() == "abcdefghij"
    assert target.flushes == 0


def test_flush_drains_and_flushes_target():
    target = CountingText()
    sink = BufferedTextSink(target)

    sink.write_text("line\n")
    sink.flush()

    assert target.getvalue() == "line\n"
    assert target.flushes == 1


def test_sink_defaults_to_stdout(capsys):
    sink = BufferedTextSink()
    sink.write_text("hello\n")
    sink.flush()

    assert capsys.readouterr().out == "hello\n"


def test_aggregate_line_uses_fixed_width_average():
    fmt = AggregateLineFormatter()

    assert fmt(AggregateLine("2024-01-01T07", 3.14159)) == "2024-01-01T07:00:00Z   3.1416\n"
    assert fmt(AggregateLine("2024-01-01T07", 1234.5)) == "2024-01-01T07:00:00Z 1234.5000\n"
