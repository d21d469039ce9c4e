"""Decide whether a regular file should be stored with the executable mode.

``is_executable`` is picked once, for the platform we run on:

* POSIX: any of the user/group/other execute bits is set.
* Windows: there are no execute bits, so the file extension is checked
  against ``PATHEXT``. This is only an approximation.
* anything else: never executable.
"""
import os
import stat
from typing import Callable

from . import types

_EXECUTE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
_DEFAULT_PATHEXT = '.COM;.EXE;.BAT;.CMD'


def _posix_is_executable(path: types.Path) -> bool:
    return bool(os.stat(path, follow_symlinks=False).st_mode & _EXECUTE_BITS)


def _windows_is_executable(path: types.Path) -> bool:
    extensions = os.environ.get('PATHEXT', _DEFAULT_PATHEXT).lower().split(';')
    extension = os.path.splitext(path)[1].lower()
    return bool(extension) and extension in extensions


def _never_executable(path: types.Path) -> bool:
    return False


def _resolve(os_name: str) -> Callable[[types.Path], bool]:
    if os_name == 'posix':
        return _posix_is_executable
    if os_name == 'nt':
        return _windows_is_executable
    return _never_executable


is_executable = _resolve(os.name)
