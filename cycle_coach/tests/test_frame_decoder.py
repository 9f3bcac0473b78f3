import asyncio

from cycle_coach.client.decoder import FrameDecoder, extract_delta, iter_deltas


STREAM = (
    ": keep-alive\n"
    "\n"
    'data: {"choices":[{"index":0,"delta":{"role":"assistant"}}]}\r\n'
    "\r\n"
    'data: {"choices":[{"index":0,"delta":{"content":"Try "}}]}\n\n'
    'data: {"choices":[{"index":0,"delta":{"content":"bringing her tea ☕."}}]}\n\n'
    "event: ping\n"
    "data: [DONE]\n\n"
    'data: {"choices":[{"index":0,"delta":{"content":"after the end"}}]}\n\n'
).encode("utf-8")

EXPECTED = ["Try ", "bringing her tea ☕."]


def _decode(chunks):
    decoder = FrameDecoder()
    out = []
    for chunk in chunks:
        out.extend(decoder.feed(chunk))
        if decoder.done:
            break
    out.extend(decoder.close())
    return out, decoder


def test_whole_stream_in_one_chunk():
    deltas, decoder = _decode([STREAM])
    assert deltas == EXPECTED
    assert decoder.done


def test_output_invariant_to_line_boundary_splits():
    lines = STREAM.splitlines(keepends=True)
    for i in range(1, len(lines)):
        chunks = [b"".join(lines[:i]), b"".join(lines[i:])]
        assert _decode(chunks)[0] == EXPECTED


def test_output_invariant_to_arbitrary_byte_splits():
    for i in range(1, len(STREAM)):
        assert _decode([STREAM[:i], STREAM[i:]])[0] == EXPECTED
    single_bytes = [STREAM[i:i + 1] for i in range(len(STREAM))]
    assert _decode(single_bytes)[0] == EXPECTED


def test_comments_only_stream_yields_nothing_and_terminates():
    stream = b": hello\n\n: still here\n\ndata: [DONE]\n\n"
    deltas, decoder = _decode([stream])
    assert deltas == []
    assert decoder.done


def test_feed_after_done_is_ignored():
    decoder = FrameDecoder()
    decoder.feed(b"data: [DONE]\n")
    assert decoder.done
    assert decoder.feed(b'data: {"choices":[{"delta":{"content":"x"}}]}\n') == []


def test_non_data_lines_and_missing_content_are_skipped():
    decoder = FrameDecoder()
    deltas = decoder.feed(
        b"id: 7\n"
        b'data: {"choices":[]}\n'
        b'data: {"choices":[{"delta":{}}]}\n'
        b'data: {"choices":[{"delta":{"content":""}}]}\n'
        b'data: {"choices":[{"delta":{"content":"ok"}}]}\n'
    )
    assert deltas == ["ok"]


def test_malformed_frame_is_pushed_back_then_quarantined():
    decoder = FrameDecoder(max_retries=3)
    bad = 'data: {"choices":[{"delta":{"content":"br'
    good = 'data: {"choices":[{"delta":{"content":"fine"}}]}'

    # first attempt fails: the line goes back on the buffer and the chunk halts
    assert decoder.feed((bad + "\n" + good + "\n").encode()) == []
    # second attempt on the next chunk fails too
    assert decoder.feed(b"") == []
    # third failure discards the frame and decoding resumes
    assert decoder.feed(b"") == ["fine"]
    assert decoder.quarantined == [bad]
    assert not decoder.done


def test_malformed_frame_at_end_of_stream_does_not_hang():
    decoder = FrameDecoder(max_retries=5)
    decoder.feed(b'data: {"oops"\ndata: {"choices":[{"delta":{"content":"tail"}}]}\n')
    assert decoder.close() == ["tail"]
    assert decoder.done
    assert decoder.quarantined == ['data: {"oops"']


def test_trailing_line_without_newline_is_read_on_close():
    decoder = FrameDecoder()
    assert decoder.feed(b'data: {"choices":[{"delta":{"content":"last"}}]}') == []
    assert decoder.close() == ["last"]


def test_extract_delta_shapes():
    assert extract_delta({"choices": [{"delta": {"content": "a"}}]}) == "a"
    assert extract_delta({"choices": [{"delta": {"content": None}}]}) is None
    assert extract_delta({"choices": "nope"}) is None
    assert extract_delta(["not", "a", "dict"]) is None


def test_iter_deltas_stops_at_sentinel():
    consumed = []

    async def body():
        for chunk in (STREAM[:40], STREAM[40:120], STREAM[120:], b"never read"):
            consumed.append(chunk)
            yield chunk

    async def collect():
        return [d async for d in iter_deltas(body())]

    assert asyncio.run(collect()) == EXPECTED
    assert b"never read" not in consumed
