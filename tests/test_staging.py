import random
import pytest

from fabtrack.models import StagedFile
from fabtrack.staging import StagingBuffer


def staged(name: str, content: bytes = b"data") -> StagedFile:
    return StagedFile.from_bytes(name, content)


def test_add_preserves_selection_order():
    buffer = StagingBuffer()
    added = buffer.add([staged("b.pdf"), staged("a.png"), staged("c.dwg")])
    assert [f.name for f in added] == ["b.pdf", "a.png", "c.dwg"]
    assert buffer.names == ["b.pdf", "a.png", "c.dwg"]


def test_duplicate_name_from_separate_adds_is_dropped():
    buffer = StagingBuffer()
    buffer.add([staged("a.pdf", b"first")])
    added = buffer.add([staged("a.pdf", b"second version")])
    assert added == []
    assert buffer.names == ["a.pdf"]
    assert buffer.files[0].content == b"first"


def test_duplicate_name_within_one_batch_is_dropped():
    buffer = StagingBuffer()
    buffer.add([staged("a.pdf"), staged("b.pdf"), staged("a.pdf")])
    assert buffer.names == ["a.pdf", "b.pdf"]


def test_random_add_sequences_stay_unique_in_first_seen_order():
    rng = random.Random(17408)
    pool = [f"file{i}.pdf" for i in range(8)]
    for _ in range(50):
        buffer = StagingBuffer()
        first_seen = []
        for _ in range(rng.randint(1, 6)):
            batch = [rng.choice(pool) for _ in range(rng.randint(0, 5))]
            for name in batch:
                if name not in first_seen:
                    first_seen.append(name)
            buffer.add([staged(name) for name in batch])
        assert buffer.names == first_seen
        assert len(set(buffer.names)) == len(buffer)


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_remove_at_out_of_range_is_a_no_op(index):
    buffer = StagingBuffer()
    buffer.add([staged("a"), staged("b"), staged("c")])
    buffer.remove_at(index)
    assert buffer.names == ["a", "b", "c"]


def test_remove_at_removes_exactly_one_entry():
    buffer = StagingBuffer()
    buffer.add([staged("a"), staged("b"), staged("c")])
    buffer.remove_at(1)
    assert buffer.names == ["a", "c"]
    # A removed name can be staged again
    buffer.add([staged("b")])
    assert buffer.names == ["a", "c", "b"]


def test_clear_and_totals():
    buffer = StagingBuffer()
    buffer.add([staged("a", b"12345"), staged("b", b"123")])
    assert buffer.total_size == 8
    assert bool(buffer) is True
    buffer.clear()
    assert len(buffer) == 0
    assert bool(buffer) is False


def test_staged_file_from_path_guesses_mime_type(tmp_path):
    path = tmp_path / "drawing.pdf"
    path.write_bytes(b"%PDF-1.4")
    f = StagedFile.from_path(str(path))
    assert f.name == "drawing.pdf"
    assert f.size == 8
    assert f.mime_type == "application/pdf"

    unknown = tmp_path / "blob.zzzunknown"
    unknown.write_bytes(b"?")
    assert StagedFile.from_path(str(unknown)).mime_type == "application/octet-stream"
