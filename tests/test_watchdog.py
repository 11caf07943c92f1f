# test_watchdog.py
'''
Tests for dev_watchdog.watch_tree

Requirements
------------
* Two-space indent, single quotes
* Uses pytest and watchdog's real backend
'''

from __future__ import annotations

import os
import threading
import time
from pathlib import Path

import pytest

from serve_live import dev_watchdog as dw


# ─────────────────────────────────────────────────────────────────────────────
# Utility
# ─────────────────────────────────────────────────────────────────────────────
def _touch(path: Path, text: str = 'x') -> None:
  path.write_text(text, encoding='utf-8')
  # Ensure mtime bumps even on very fast writes
  os.utime(path, None)


def _collector():
  seen: list[str] = []
  hit = threading.Event()

  def on_change(paths):
    seen.extend(str(p) for p in paths)
    hit.set()

  return seen, hit, on_change


# ─────────────────────────────────────────────────────────────────────────────
# Test: change in a nested directory reaches the callback
# ─────────────────────────────────────────────────────────────────────────────
def test_recursive_change(tmp_path: Path):
  nested = tmp_path / 'a' / 'b'
  nested.mkdir(parents=True)
  f = nested / 'deep.txt'

  seen, hit, on_change = _collector()
  with dw.watch_tree(tmp_path, on_change):
    _touch(f, 'first')
    assert hit.wait(2.0), 'callback did not fire'
    deadline = time.time() + 2.0
    while not any(p.endswith('deep.txt') for p in seen) and time.time() < deadline:
      time.sleep(0.05)
  assert any(p.endswith('deep.txt') for p in seen)


# ─────────────────────────────────────────────────────────────────────────────
# Test: a move reports where the file went
# ─────────────────────────────────────────────────────────────────────────────
def test_move_reports_destination(tmp_path: Path):
  src = tmp_path / 'old.txt'
  _touch(src)

  seen, hit, on_change = _collector()
  with dw.watch_tree(tmp_path, on_change):
    src.rename(tmp_path / 'new.txt')
    deadline = time.time() + 2.0
    while not any(p.endswith('new.txt') for p in seen) and time.time() < deadline:
      time.sleep(0.05)
  assert any(p.endswith('new.txt') for p in seen)


# ─────────────────────────────────────────────────────────────────────────────
# Test: callback failure is a watcher error, not a dead observer
# ─────────────────────────────────────────────────────────────────────────────
def test_callback_errors_go_to_on_error(tmp_path: Path):
  errors: list[Exception] = []
  got_error = threading.Event()
  calls = []

  def on_change(paths):
    calls.append(paths)
    raise RuntimeError('boom')

  def on_error(exc):
    errors.append(exc)
    got_error.set()

  with dw.watch_tree(tmp_path, on_change, on_error):
    _touch(tmp_path / 'one.txt')
    assert got_error.wait(2.0)
    n = len(calls)
    _touch(tmp_path / 'two.txt')
    deadline = time.time() + 2.0
    while len(calls) == n and time.time() < deadline:
      time.sleep(0.05)
  assert len(calls) > n, 'observer stopped after a callback error'
  assert isinstance(errors[0], RuntimeError)


# ─────────────────────────────────────────────────────────────────────────────
# Test: close() halts further notifications and is idempotent
# ─────────────────────────────────────────────────────────────────────────────
def test_close_prevents_future_events(tmp_path: Path):
  f = tmp_path / 'c.txt'
  _touch(f, 'init')

  seen, hit, on_change = _collector()
  handle = dw.watch_tree(tmp_path, on_change)
  _touch(f, '1')
  assert hit.wait(2.0)

  handle.close()
  handle.close()
  assert handle.closed
  time.sleep(0.1)
  hit.clear()

  _touch(f, '2')
  time.sleep(0.3)
  assert not hit.is_set(), 'callback fired after close()'


def test_missing_directory_raises(tmp_path: Path):
  with pytest.raises(OSError):
    dw.watch_tree(tmp_path / 'nope', lambda paths: None)


# ─────────────────────────────────────────────────────────────────────────────
# Test: only the changed file is reported, not its parent directory
# ─────────────────────────────────────────────────────────────────────────────
def test_parent_directory_not_reported(tmp_path: Path):
  sub = tmp_path / 'sub'
  sub.mkdir()

  seen, hit, on_change = _collector()
  with dw.watch_tree(tmp_path, on_change):
    _touch(sub / 'page.html')
    assert hit.wait(2.0)
    time.sleep(0.3)
  assert str(sub) not in seen
  assert str(tmp_path) not in seen
  assert any(p.endswith('page.html') for p in seen)
