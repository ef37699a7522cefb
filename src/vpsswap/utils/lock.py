from __future__ import annotations

import fcntl
import os
from time import monotonic, sleep
from typing import TextIO

from vpsswap.errors import LockError


class AdvisoryLock:
  """Exclusive flock() on a lock file, held for the duration of a with-block.
  Only protects against other processes that take the same lock."""
  lock_file: str
  timeout: float
  handle: TextIO | None

  def __init__(self, lock_file: str, timeout: float = 10.0):
    self.lock_file = lock_file
    self.timeout = timeout
    self.handle = None

  def acquire(self):
    assert self.handle is None, f"lock already held: {self.lock_file}"
    directory = os.path.dirname(self.lock_file)
    if directory:
      os.makedirs(directory, exist_ok = True)
    handle = open(self.lock_file, "a+", encoding = "utf-8")
    deadline = monotonic() + self.timeout
    while True:
      try:
        fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
        break
      except BlockingIOError:
        if monotonic() >= deadline:
          handle.close()
          raise LockError(f"another run holds {self.lock_file}, try again once it has finished")
        sleep(0.2)
    handle.seek(0)
    handle.truncate()
    handle.write(f"{os.getpid()}\n")
    handle.flush()
    self.handle = handle

  def release(self):
    if self.handle is None:
      return
    fcntl.flock(self.handle, fcntl.LOCK_UN)
    self.handle.close()
    self.handle = None

  def __enter__(self) -> AdvisoryLock:
    self.acquire()
    return self

  def __exit__(self, *exc_info):
    self.release()
