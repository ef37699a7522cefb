from __future__ import annotations

import os
from datetime import datetime
from typing import TextIO

from vpsswap.utils.text import RED, YELLOW, strip_colors


class Logger:
  """Collects messages worth repeating at the end of a run. Everything printed through echo()
  is additionally written to the attached log file (if any), without colors."""
  messages: list[str]
  log_file: str | None
  handle: TextIO | None

  def __init__(self):
    self.messages = []
    self.log_file = None
    self.handle = None

  def clear(self):
    self.messages = []

  def info(self, message: str):
    self.messages.append(message)
    self.write(f"INFO {message}")

  def warn(self, message: str):
    self.messages.append(f"{YELLOW}{message}")
    self.write(f"WARN {message}")

  def error(self, message: str):
    self.messages.append(f"{RED}{message}")
    self.write(f"ERROR {message}")

  def echo(self, line: str):
    print(line)
    self.write(line)

  def attach(self, log_file: str):
    self.detach()
    directory = os.path.dirname(log_file)
    if directory:
      os.makedirs(directory, exist_ok = True)
    self.handle = open(log_file, "a", encoding = "utf-8")
    self.log_file = log_file

  def detach(self):
    if self.handle is not None:
      self.handle.close()
    self.handle = None
    self.log_file = None

  def write(self, line: str):
    if self.handle is None:
      return
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    self.handle.write(f"{timestamp} {strip_colors(line)}\n")
    self.handle.flush()


logger = Logger()
