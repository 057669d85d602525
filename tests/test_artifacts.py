from pathlib import Path

import pytest

from protobench.errors import EmptyResult, MalformedResult, MissingResult
from protobench.models import Protocol
from protobench.storage import artifact_path, parse_samples, read_artifact, remove_artifact


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "bench.csv"
    path.write_text(text)
    return path


def test_reads_samples_and_removes_artifact(tmp_path):
    path = _write(
        tmp_path,
        "ts_unix_ns,latency_ns,ok\n"
        "1000000000,1500000,true\n"
        "1500000000,2500000,false\n",
    )

    samples = read_artifact(path)

    assert [s.latency_ms for s in samples] == [1.5, 2.5]
    assert [s.timestamp_ns for s in samples] == [1_000_000_000, 1_500_000_000]
    assert [s.ok for s in samples] == [True, False]
    assert not path.exists()


def test_column_order_and_extra_columns_do_not_matter(tmp_path):
    path = _write(tmp_path, "ok, latency_ns ,status,ts_unix_ns\ntrue,1000000,200,5\n")
    (sample,) = parse_samples(path)
    assert sample.latency_ms == 1.0
    assert sample.timestamp_ns == 5


def test_header_only_is_empty(tmp_path):
    path = _write(tmp_path, "ts_unix_ns,latency_ns,ok\n")
    with pytest.raises(EmptyResult):
        read_artifact(path)
    assert not path.exists()


def test_zero_byte_file_is_empty(tmp_path):
    with pytest.raises(EmptyResult):
        read_artifact(_write(tmp_path, ""))


def test_missing_column_is_malformed(tmp_path):
    path = _write(tmp_path, "ts_unix_ns,ok\n1,true\n")
    with pytest.raises(MalformedResult, match="latency_ns"):
        read_artifact(path)


@pytest.mark.parametrize(
    "row",
    [
        "abc,1000,true",
        "1,fast,true",
        "1,1000,yes",
        "1,-1000,true",
        "1,1.5,true",
        "1,1e6,true",
        "1_000,1000,true",
    ],
)
def test_unparsable_row_is_malformed(tmp_path, row):
    path = _write(tmp_path, f"ts_unix_ns,latency_ns,ok\n1,1000,true\n{row}\n")
    with pytest.raises(MalformedResult, match="line 3"):
        read_artifact(path)
    assert not path.exists()


def test_absent_artifact_is_missing(tmp_path):
    with pytest.raises(MissingResult):
        read_artifact(tmp_path / "never-written.csv")


def test_artifact_paths_are_unique(tmp_path):
    paths = {artifact_path(tmp_path, Protocol.H3) for _ in range(50)}
    assert len(paths) == 50
    assert all(p.name.startswith("bench-h3-") and p.suffix == ".csv" for p in paths)


def test_remove_artifact_tolerates_absent_file(tmp_path):
    remove_artifact(tmp_path / "gone.csv")


def test_invalid_utf8_is_malformed(tmp_path):
    path = tmp_path / "bench.csv"
    path.write_bytes(b"ts_unix_ns,latency_ns,ok\n1,1000,true\n2,\xff\xfe,true\n")

    with pytest.raises(MalformedResult):
        read_artifact(path)
    assert not path.exists()


def test_oversized_field_is_malformed(tmp_path):
    path = _write(tmp_path, f'ts_unix_ns,latency_ns,ok\n1,"{"9" * 200_000}",true\n')
    with pytest.raises(MalformedResult):
        read_artifact(path)
