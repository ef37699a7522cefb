from __future__ import annotations

import os
import re


class SysctlManager:
  """Keeps a single `key=value` line in a sysctl config file. The value is updated in place
  if the key is already present; duplicate lines for the same key get collapsed into one."""
  sysctl_conf: str

  def __init__(self, sysctl_conf: str):
    self.sysctl_conf = sysctl_conf

  def read_lines(self) -> list[str]:
    if not os.path.exists(self.sysctl_conf):
      return []
    with open(self.sysctl_conf, encoding = "utf-8") as fh:
      return fh.read().splitlines()

  @staticmethod
  def key_pattern(key: str) -> re.Pattern:
    return re.compile(rf"^\s*{re.escape(key)}\s*=\s*(.*?)\s*$")

  def ensure(self, key: str, value: str) -> bool:
    """Returns True if the file was changed."""
    pattern = self.key_pattern(key)
    lines = self.read_lines()
    result: list[str] = []
    seen = False
    for line in lines:
      if not pattern.match(line):
        result.append(line)
      elif not seen:
        result.append(f"{key}={value}")
        seen = True
    if not seen:
      if result and result[-1].strip() != "":
        result.append("")
      result.append(f"{key}={value}")
    if result == lines:
      return False
    with open(self.sysctl_conf, "w", encoding = "utf-8") as fh:
      fh.write("".join(f"{line}\n" for line in result))
    return True
