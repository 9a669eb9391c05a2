"""Tests for the live tail reader."""

import json
import threading

from ccx.models import MessageKind
from ccx.tail import TailReader, TailState, watch_session


def append(path, data: str):
    with open(path, "a", encoding="utf-8") as f:
        f.write(data)


class TestTailReader:
    def test_starts_at_end_of_existing_file(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("old line\n")
        reader = TailReader(path)
        assert reader.poll() == []
        append(path, "new line\n")
        assert reader.poll() == ["new line"]

    def test_explicit_offset(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("one\ntwo\n")
        reader = TailReader(path, offset=0)
        assert reader.poll() == ["one", "two"]

    def test_split_line_across_cycles(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        lines = [json.dumps({"type": "user", "n": i}) for i in range(5)]
        payload = "\n".join(lines) + "\n"

        # Three write+poll cycles; the second cut falls inside line 3
        cut1 = len(lines[0]) + 1
        cut2 = cut1 + len(lines[1]) + 1 + len(lines[2]) // 2
        events = []
        for start, end in [(0, cut1), (cut1, cut2), (cut2, len(payload))]:
            append(path, payload[start:end])
            events.extend(reader.poll())

        assert events == lines
        assert reader.pending == b""
        assert reader.offset == len(payload.encode())

    def test_partial_line_is_held_back(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        append(path, '{"a": 1}\n{"b"')
        assert reader.poll() == ['{"a": 1}']
        assert reader.pending == b'{"b"'
        # Offset includes the undelivered fragment
        assert reader.offset == len('{"a": 1}\n{"b"')
        append(path, ": 2}\n")
        assert reader.poll() == ['{"b": 2}']

    def test_no_growth_is_idle(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("x\n")
        reader = TailReader(path)
        assert reader.poll() == []
        assert reader.state == TailState.IDLE

    def test_chunk_cap(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path, max_chunk_size=8)
        append(path, "aaaa\nbbbb\ncccc\n")
        events = []
        ticks = 0
        while reader.offset < path.stat().st_size:
            events.extend(reader.poll())
            ticks += 1
        assert events == ["aaaa", "bbbb", "cccc"]
        assert ticks == 2

    def test_blank_lines_skipped(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        append(path, "a\n\n  \nb\n")
        assert reader.poll() == ["a", "b"]

    def test_multibyte_char_split_across_ticks(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_bytes(b"")
        reader = TailReader(path)
        data = "héllo\n".encode("utf-8")
        with open(path, "ab") as f:
            f.write(data[:2])
        assert reader.poll() == []
        with open(path, "ab") as f:
            f.write(data[2:])
        assert reader.poll() == ["héllo"]

    def test_missing_file_is_not_fatal(self, tmp_path):
        path = tmp_path / "later.jsonl"
        reader = TailReader(path)
        assert reader.offset == 0
        assert reader.poll() == []
        path.write_text("first\n")
        assert reader.poll() == ["first"]

    def test_file_removed_mid_watch(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        path.unlink()
        assert reader.poll() == []
        assert reader.state != TailState.CLOSED

    def test_closed_reader_emits_nothing(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        reader.close()
        append(path, "late\n")
        assert reader.poll() == []
        assert reader.closed


class TestFollow:
    def test_stops_on_event(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        append(path, "one\ntwo\nthree\n")
        stop = threading.Event()

        received = []
        for line in reader.follow(stop, interval=0.01):
            received.append(line)
            if line == "two":
                stop.set()

        assert received == ["one", "two"]
        assert reader.closed

    def test_already_cancelled(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        append(path, "one\n")
        stop = threading.Event()
        stop.set()
        assert list(reader.follow(stop, interval=0.01)) == []
        assert reader.closed

    def test_follows_writer_thread(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        reader = TailReader(path)
        stop = threading.Event()
        expected = [f"line {i}" for i in range(4)]

        def writer():
            for line in expected:
                append(path, line + "\n")
                stop.wait(0.02)

        thread = threading.Thread(target=writer)
        thread.start()
        received = []
        for line in reader.follow(stop, interval=0.01):
            received.append(line)
            if len(received) == len(expected):
                stop.set()
        thread.join()
        assert received == expected


class TestWatchSession:
    def test_yields_classified_messages(self, tmp_path):
        path = tmp_path / "s.jsonl"
        path.write_text("")
        records = [
            {"type": "summary", "summary": "ignored"},
            {"type": "user", "uuid": "u1", "message": {"role": "user", "content": "Go"}},
            "garbage",
            {"type": "assistant", "uuid": "a1", "parentUuid": "u1", "message": {"content": []}},
        ]
        append(path, "".join((r if isinstance(r, str) else json.dumps(r)) + "\n" for r in records))

        stop = threading.Event()
        messages = []
        for message in watch_session(path, stop, interval=0.01, offset=0):
            messages.append(message)
            if len(messages) == 2:
                stop.set()

        assert [m.uuid for m in messages] == ["u1", "a1"]
        assert [m.kind for m in messages] == [MessageKind.USER_PROMPT, MessageKind.ASSISTANT]
