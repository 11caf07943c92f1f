# events.py
'''
The `files-changed` notification and its server-sent-event framing.

Wire format of one notification (the SSE `data:` payload):

    {"paths": ["/srv/site/index.html", ...], "dropped": false}

`dropped` is true when at least one earlier notification never made it
to the client because the channel was full.
'''

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Optional, Tuple

EVENT_NAME = 'files-changed'

# A comment line: ignored by EventSource, keeps idle proxies from timing out.
SSE_KEEP_ALIVE = b':\n\n'


@dataclass(frozen=True)
class ChangeEvent:
  paths: Tuple[str, ...]
  dropped: bool = False


def display_path(path) -> str:
  '''
  Render a filesystem path as text that always survives JSON encoding.

  Bytes that are not valid UTF-8 turn into U+FFFD.
  '''
  return os.fsencode(path).decode('utf-8', 'replace')


def encode_event(event: ChangeEvent) -> str:
  '''ChangeEvent → JSON text.  Deterministic; raises TypeError on garbage.'''
  payload = {
    'paths': [display_path(p) for p in event.paths],
    'dropped': bool(event.dropped),
  }
  return json.dumps(payload, ensure_ascii=False, separators=(',', ':'))


def decode_event(text: str) -> ChangeEvent:
  obj = json.loads(text)
  if not isinstance(obj, dict) or not isinstance(obj.get('paths'), list):
    raise ValueError(f'not a {EVENT_NAME} payload: {text!r}')
  return ChangeEvent(tuple(obj['paths']), bool(obj.get('dropped', False)))


# ─────────────────────────────────────────────────────────────────────────────
# SSE framing
# ─────────────────────────────────────────────────────────────────────────────
def sse_frame(data: str, event: Optional[str] = None) -> bytes:
  '''One server-sent event.  Newlines in *data* become extra `data:` lines.'''
  lines = []
  if event:
    lines.append(f'event: {event}')
  for chunk in data.splitlines() or ['']:
    lines.append(f'data: {chunk}')
  return ('\n'.join(lines) + '\n\n').encode('utf-8')
