# paths.py
'''
Decide which changed paths are worth telling the browser about.

Editors and version control churn through files nobody wants to reload
the page for.  Three kinds of path count as *noise*:

    • Emacs auto-save files   : name starts with '.#'
    • backup files            : full path ends with '~'
    • git metadata            : any component is '.git'

All checks are case-sensitive and side-effect free.
'''

from __future__ import annotations

import os
from pathlib import PurePath
from typing import Iterable, List, Union

PathLike = Union[str, bytes, os.PathLike]

VCS_DIR = '.git'


def _as_str(path: PathLike) -> str:
  # surrogateescape keeps undecodable bytes comparable instead of failing
  return os.fsdecode(path)


def is_auto_save(path: PathLike) -> bool:
  return PurePath(_as_str(path)).name.startswith('.#')


def is_backup(path: PathLike) -> bool:
  return _as_str(path).endswith('~')


def is_git_metadata(path: PathLike) -> bool:
  return VCS_DIR in PurePath(_as_str(path)).parts


def is_noise(path: PathLike) -> bool:
  return is_auto_save(path) or is_backup(path) or is_git_metadata(path)


def filter_paths(paths: Iterable[PathLike]) -> List[PathLike]:
  '''Keep the relevant paths, in order.  Empty result ⇒ nothing to report.'''
  return [p for p in paths if not is_noise(p)]
