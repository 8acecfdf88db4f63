from __future__ import annotations

from itertools import combinations
from typing import List, Sequence

import pytest

from flexglove.core.reassembler import FrameReassembler, FramingMode

STREAM = "10,20,30,40,50\n60,70,80,90,100\n"
EXPECTED = ["10,20,30,40,50", "60,70,80,90,100"]


def _feed(chunks: Sequence[str], reassembler: FrameReassembler | None = None) -> List[str]:
    reassembler = reassembler or FrameReassembler()
    frames: List[str] = []
    for chunk in chunks:
        frames.extend(reassembler.push(chunk))
    return frames


def _split(text: str, cuts: Sequence[int]) -> List[str]:
    bounds = [0, *cuts, len(text)]
    return [text[a:b] for a, b in zip(bounds, bounds[1:])]


def test_single_chunk_with_two_frames() -> None:
    assert _feed([STREAM]) == EXPECTED


@pytest.mark.parametrize("cut", range(1, len(STREAM)))
def test_any_single_split_yields_same_frames(cut: int) -> None:
    assert _feed(_split(STREAM, [cut])) == EXPECTED


def test_any_two_splits_yield_same_frames() -> None:
    for cuts in combinations(range(1, len(STREAM)), 2):
        assert _feed(_split(STREAM, cuts)) == EXPECTED, cuts


def test_byte_by_byte_delivery() -> None:
    assert _feed(list(STREAM)) == EXPECTED


def test_crlf_terminated_frames() -> None:
    assert _feed(["1,2,3,4,5\r\n6,7,8,9,10\r", "\n"]) == ["1,2,3,4,5", "6,7,8,9,10"]


def test_partial_frame_stays_buffered() -> None:
    reassembler = FrameReassembler()
    assert reassembler.push("1,2,3,4,5\n6,7") == ["1,2,3,4,5"]
    assert reassembler.buffered == "6,7"
    assert reassembler.framing is FramingMode.NEWLINE


def test_blank_lines_are_skipped() -> None:
    assert _feed(["\n\n1,2,3,4,5\n\r\n"]) == ["1,2,3,4,5"]


def test_unterminated_packets_detected_after_second_packet() -> None:
    reassembler = FrameReassembler()
    assert reassembler.push("10,20,30,40,50") == []
    assert reassembler.buffered == "10,20,30,40,50"
    assert reassembler.push("60,70,80,90,100") == ["10,20,30,40,50", "60,70,80,90,100"]
    assert reassembler.framing is FramingMode.FIELD_COUNT
    assert reassembler.push("1,2,3,4,5") == ["1,2,3,4,5"]
    assert reassembler.buffered == ""


def test_field_count_framing_emits_whole_buffer_immediately() -> None:
    reassembler = FrameReassembler(framing=FramingMode.FIELD_COUNT)
    assert reassembler.push("10,20,") == []
    assert reassembler.push("30,40,50") == ["10,20,30,40,50"]
    assert reassembler.buffered == ""


def test_newline_still_takes_priority_in_field_count_mode() -> None:
    reassembler = FrameReassembler(framing=FramingMode.FIELD_COUNT)
    assert reassembler.push("1,2,3,4,5,6\n7,8") == ["1,2,3,4,5,6"]
    assert reassembler.buffered == "7,8"


def test_overflow_resets_buffer_without_frames() -> None:
    reassembler = FrameReassembler(limit=50)
    assert reassembler.push("x" * 51) == []
    assert reassembler.buffered == ""
    assert reassembler.overflow_count == 1


def test_buffer_at_limit_is_kept() -> None:
    reassembler = FrameReassembler(limit=50)
    assert reassembler.push("x" * 50) == []
    assert reassembler.buffered == "x" * 50
    assert reassembler.overflow_count == 0


def test_overflow_accumulated_over_several_chunks() -> None:
    reassembler = FrameReassembler(limit=10)
    for _ in range(3):
        reassembler.push("abcd")
    assert reassembler.overflow_count == 1
    assert len(reassembler.buffered) <= 10


def test_leftover_after_newline_is_bounded() -> None:
    reassembler = FrameReassembler(limit=50)
    assert reassembler.push("1,2,3,4,5\n" + "y" * 60) == ["1,2,3,4,5"]
    assert reassembler.buffered == ""
    assert reassembler.overflow_count == 1


def test_recovers_after_garbage() -> None:
    reassembler = FrameReassembler(limit=20)
    reassembler.push("#" * 25)
    assert reassembler.push("1,2,3,4,5\n") == ["1,2,3,4,5"]


def test_reset_forgets_buffer_and_framing() -> None:
    reassembler = FrameReassembler()
    reassembler.push("1,2,3,4,5\n6,")
    reassembler.reset()
    assert reassembler.buffered == ""
    assert reassembler.framing is FramingMode.AUTO


def test_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        FrameReassembler(limit=0)


def test_fragmented_unterminated_packets_are_never_merged() -> None:
    chunks = ["10,20,30,40,50", "60,70,8", "0,90,100", "1,2,3,4,5", "6,7,8,9,10"]
    reassembler = FrameReassembler()
    assert [reassembler.push(chunk) for chunk in chunks] == [
        [],
        ["10,20,30,40,50"],
        ["60,70,80,90,100"],
        ["1,2,3,4,5"],
        ["6,7,8,9,10"],
    ]
    assert reassembler.framing is FramingMode.FIELD_COUNT
    assert reassembler.buffered == ""


def test_held_packet_extended_by_digits_then_newline() -> None:
    assert _feed(["10,20,30,40,5", "0", "\n"]) == ["10,20,30,40,50"]


def test_flush_releases_single_held_packet() -> None:
    reassembler = FrameReassembler()
    assert reassembler.push("10,20,30,40,50") == []
    assert reassembler.flush() == ["10,20,30,40,50"]
    assert reassembler.buffered == ""
    assert reassembler.frames_emitted == 1
    assert reassembler.flush() == []


def test_flush_keeps_partial_line() -> None:
    reassembler = FrameReassembler()
    reassembler.push("1,2,3,4,5\n6,7")
    assert reassembler.flush() == []
    assert reassembler.buffered == "6,7"


def test_single_packet_in_field_count_mode_is_immediate() -> None:
    reassembler = FrameReassembler(framing=FramingMode.FIELD_COUNT)
    assert reassembler.push("10,20,30,40,50") == ["10,20,30,40,50"]
