"""Unit tests for the CSV sink."""

import pandas as pd

from hello_bench.writer import CsvSink, open_sink


def test_rows_are_appended_with_single_header(tmp_path):
    sink = open_sink(tmp_path / "out.csv")
    sink.append({"name": "hello", "latency_ms": 1.5})
    sink.append({"name": "lines", "latency_ms": 2.5})

    df = pd.read_csv(sink.path)
    assert list(df.columns) == ["name", "latency_ms"]
    assert df["name"].tolist() == ["hello", "lines"]
    assert sink.rows_written == 2
    assert sink.path.read_text().count("name,latency_ms") == 1


def test_each_append_is_durable(tmp_path):
    sink = CsvSink(tmp_path / "out.csv")
    sink.append({"a": 1, "b": 2})

    assert pd.read_csv(sink.path).to_dict("records") == [{"a": 1, "b": 2}]


def test_opening_truncates_previous_run(tmp_path):
    path = tmp_path / "out.csv"
    path.write_text("stale,data\n1,2\n")

    sink = CsvSink(path)
    assert not path.exists()

    sink.extend([{"x": 1}, {"x": 2}])
    assert pd.read_csv(path)["x"].tolist() == [1, 2]


def test_columns_follow_first_row(tmp_path):
    sink = CsvSink(tmp_path / "nested" / "out.csv")
    sink.append({"a": 1, "b": 2})
    sink.append({"b": 4, "a": 3})

    df = pd.read_csv(sink.path)
    assert list(df.columns) == ["a", "b"]
    assert df.to_dict("records") == [{"a": 1, "b": 2}, {"a": 3, "b": 4}]
