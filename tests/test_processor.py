from pathlib import Path

from imgopt.cache import CacheStore
from imgopt.errors import TransformError
from imgopt.processor import process, process_file
from imgopt.results import BatchOutcome, OptimizedFile
from imgopt.settings import OptimizerSettings


def shrink_engine(file_path, data, format_options):
    return data[: len(data) // 2]


def grow_engine(file_path, data, format_options):
    return data + b"!"


def broken_engine(file_path, data, format_options):
    raise TransformError("corrupt input")


def test_ratio_and_sizes():
    stats = OptimizedFile.from_sizes(60 * 1024, 100 * 1024, is_cached=False)
    assert stats.ratio == -40
    assert stats.size == 60
    assert stats.old_size == 100
    assert stats.skip_write is False


def test_ratio_floors_toward_negative():
    assert OptimizedFile.from_sizes(2, 3, False).ratio == -34
    assert OptimizedFile.from_sizes(4, 3, False).ratio == 33


def test_empty_original_is_skipped():
    stats = OptimizedFile.from_sizes(0, 0, False)
    assert stats.ratio == 0
    assert stats.skip_write is True


def test_skip_write_when_not_smaller():
    settings = OptimizerSettings()
    equal = process_file("a.png", b"abcd", settings, engine=lambda p, d, o: b"wxyz")
    bigger = process_file("a.png", b"abcd", settings, engine=grow_engine)

    assert equal.skip_write is True
    assert equal.stats.ratio == 0
    assert bigger.skip_write is True
    assert bigger.stats.ratio == 25


def test_engine_receives_format_options():
    seen = {}

    def engine(file_path, data, format_options):
        seen["path"] = file_path
        seen["options"] = format_options
        return data

    settings = OptimizerSettings(format_options={"png": {"compress_level": 1}})
    process_file("a.png", b"x", settings, engine=engine)

    assert seen == {"path": "a.png", "options": {"png": {"compress_level": 1}}}


def test_cache_hit_on_second_run(tmp_path: Path):
    settings = OptimizerSettings(cache=True, cache_location=tmp_path / "cache")
    calls = []

    def engine(file_path, data, format_options):
        calls.append(file_path)
        return shrink_engine(file_path, data, format_options)

    first = process_file("img/a.png", b"12345678", settings, engine=engine)
    second = process_file("img/a.png", b"12345678", settings, engine=engine)

    assert first.stats.is_cached is False
    assert second.stats.is_cached is True
    assert first.content == second.content == b"1234"
    assert calls == ["img/a.png"]
    assert (tmp_path / "cache" / "img" / "a.png").read_bytes() == b"1234"


def test_no_cache_writes_when_disabled(tmp_path: Path):
    settings = OptimizerSettings(cache=False, cache_location=tmp_path / "cache")
    result = process_file("a.png", b"1234", settings, engine=shrink_engine)

    assert result.stats.is_cached is False
    assert not (tmp_path / "cache").exists()


def test_engine_failure_becomes_error_result(tmp_path: Path):
    settings = OptimizerSettings(cache=True, cache_location=tmp_path / "cache")
    result = process_file("a.png", b"1234", settings, engine=broken_engine)

    assert result.error == "corrupt input"
    assert result.content is None
    assert result.stats is None
    assert not (tmp_path / "cache" / "a.png").exists()


def test_cache_write_failure_becomes_error_result(tmp_path: Path):
    blocker = tmp_path / "cache"
    blocker.write_bytes(b"")
    settings = OptimizerSettings(cache=True, cache_location=blocker)

    result = process_file("a.png", b"1234", settings, engine=shrink_engine)

    assert not result.ok
    assert "could not write cache entry" in result.error


def test_exception_without_message_uses_class_name():
    def engine(file_path, data, format_options):
        raise RuntimeError()

    result = process_file("a.png", b"1234", OptimizerSettings(), engine=engine)
    assert result.error == "RuntimeError"


def test_process_records_into_one_map():
    outcome = BatchOutcome()
    settings = OptimizerSettings()

    process("a.png", b"1234", settings, outcome, engine=shrink_engine)
    process("b.png", b"1234", settings, outcome, engine=broken_engine)

    assert list(outcome.optimized) == ["a.png"]
    assert outcome.errors == {"b.png": "corrupt input"}


def test_rerecording_a_path_moves_it_between_maps():
    outcome = BatchOutcome()
    settings = OptimizerSettings()

    process("a.png", b"1234", settings, outcome, engine=broken_engine)
    process("a.png", b"1234", settings, outcome, engine=shrink_engine)

    assert "a.png" in outcome.optimized
    assert "a.png" not in outcome.errors


def test_explicit_cache_store_is_used(tmp_path: Path):
    store = CacheStore(tmp_path / "elsewhere")
    store.write("a.png", b"cached")

    result = process_file("a.png", b"original-bytes", OptimizerSettings(), cache=store, engine=broken_engine)

    assert result.content == b"cached"
    assert result.stats.is_cached is True
