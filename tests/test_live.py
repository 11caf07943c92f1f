# test_live.py
'''
Tests for live.open_change_stream and the watcher callback behind it.
'''

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from serve_live import live
from serve_live.channel import DropTrackingChannel
from serve_live.events import decode_event


# ─────────────────────────────────────────────────────────────────────────────
# Callback: filter → channel, no real watcher
# ─────────────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_noise_only_change_is_never_sent():
  ch = DropTrackingChannel(asyncio.get_running_loop())
  sent = []
  ch.send = lambda paths: sent.append(paths)    # type: ignore[method-assign]
  on_change = live._change_callback(ch)

  on_change(['/s/notes.txt~', '/s/.#notes.txt', '/s/.git/index'])
  assert sent == []

  on_change(['/s/notes.txt', '/s/notes.txt~'])
  assert sent == [['/s/notes.txt']]


@pytest.mark.asyncio
async def test_backup_ignored_then_full_channel_reports_drop():
  ch = DropTrackingChannel(asyncio.get_running_loop())
  on_change = live._change_callback(ch)

  on_change(['/s/notes.txt~'])
  assert len(ch) == 0

  ch.try_send('occupying the only slot')
  on_change(['/s/notes.txt'])           # lost: channel momentarily full
  assert ch.dropped
  await ch.receive()

  on_change(['/s/notes.txt'])
  ev = decode_event(await ch.receive())
  assert ev.paths == ('/s/notes.txt',)
  assert ev.dropped is True


@pytest.mark.asyncio
async def test_closed_channel_stops_sends():
  ch = DropTrackingChannel(asyncio.get_running_loop())
  ch.close()
  live._change_callback(ch)(['/s/a.txt'])
  assert len(ch) == 0 and not ch.dropped


# ─────────────────────────────────────────────────────────────────────────────
# Real watcher
# ─────────────────────────────────────────────────────────────────────────────
async def _next_matching(stream, suffix: str, timeout: float = 5.0):
  async def scan():
    async for payload in stream:
      ev = decode_event(payload)
      if any(p.endswith(suffix) for p in ev.paths):
        return ev
  return await asyncio.wait_for(scan(), timeout)


@pytest.mark.asyncio
async def test_stream_reports_changes_and_releases(tmp_path: Path):
  stream = live.open_change_stream(tmp_path)
  try:
    await asyncio.sleep(0.1)
    (tmp_path / 'page.html').write_text('<p>hi</p>', encoding='utf-8')
    ev = await _next_matching(stream, 'page.html')
    assert all(not p.endswith('~') for p in ev.paths)
  finally:
    await stream.aclose()
  assert stream.released


@pytest.mark.asyncio
async def test_closing_channel_ends_stream_and_releases(tmp_path: Path):
  stream = live.open_change_stream(tmp_path)
  stream.source.close()
  assert [p async for p in stream] == []
  assert stream.released


@pytest.mark.asyncio
async def test_missing_root_raises(tmp_path: Path):
  with pytest.raises(OSError):
    live.open_change_stream(tmp_path / 'gone')


@pytest.mark.asyncio
async def test_backup_file_write_is_invisible(tmp_path: Path):
  stream = live.open_change_stream(tmp_path)
  try:
    await asyncio.sleep(0.1)
    (tmp_path / 'notes.txt~').write_text('backup', encoding='utf-8')
    got = []

    async def collect():
      async for payload in stream:
        got.append(decode_event(payload))

    with pytest.raises(asyncio.TimeoutError):
      await asyncio.wait_for(collect(), 1.0)
    assert got == []
  finally:
    await stream.aclose()
