from __future__ import annotations

import os
import shutil
from typing import Literal, TypeAlias

from vpsswap.errors import StateError
from vpsswap.utils.json_store import JsonStore
from vpsswap.utils.logging import logger

FstabState: TypeAlias = Literal["unmodified", "backed-up", "other-entries-disabled", "own-entry-present"]


class FstabEntry:
  device: str
  mountpoint: str
  fstype: str
  line: str

  def __init__(self, device: str, mountpoint: str, fstype: str, line: str):
    self.device = device
    self.mountpoint = mountpoint
    self.fstype = fstype
    self.line = line

  @property
  def is_swap(self) -> bool:
    return self.fstype == "swap"

  @staticmethod
  def parse(line: str) -> FstabEntry | None:
    """Returns None for blank lines and comments."""
    stripped = line.strip()
    if stripped == "" or stripped.startswith("#"):
      return None
    fields = stripped.split()
    if len(fields) < 3:
      if "swap" in fields:
        raise StateError(f"cannot parse mount table line: '{line}'", line)
      return None
    return FstabEntry(device = fields[0], mountpoint = fields[1], fstype = fields[2], line = line)

  @staticmethod
  def parse_quietly(line: str) -> FstabEntry | None:
    try:
      return FstabEntry.parse(line)
    except StateError:
      return None


class FstabReconciler:
  """Brings the static mount table into a state where the tool's swapfile is the only active swap
  entry and is listed exactly once. Before the very first modification, the original table gets
  copied to a fixed backup location; this happens once per lifetime of the tool state, not per run.

  unmodified -> backed-up -> other-entries-disabled -> own-entry-present
  """
  fstab: str
  backup: str
  swapfile: str
  store: JsonStore

  def __init__(self, fstab: str, backup: str, swapfile: str, store: JsonStore):
    self.fstab = fstab
    self.backup = backup
    self.swapfile = swapfile
    self.store = store

  def own_entry(self) -> str:
    return f"{self.swapfile} none swap sw 0 0"

  def read_lines(self) -> list[str]:
    if not os.path.exists(self.fstab):
      return []
    with open(self.fstab, encoding = "utf-8") as fh:
      return fh.read().splitlines()

  def write_lines(self, lines: list[str]):
    self.ensure_backup()
    with open(self.fstab, "w", encoding = "utf-8") as fh:
      fh.write("".join(f"{line}\n" for line in lines))

  def is_backed_up(self) -> bool:
    return self.store.get("fstab_backup") is not None or os.path.exists(self.backup)

  def ensure_backup(self) -> bool:
    """Returns True if the backup was created by this call."""
    if self.is_backed_up():
      return False
    if os.path.exists(self.fstab):
      shutil.copy2(self.fstab, self.backup)
    self.store.put("fstab_backup", self.backup)
    logger.info(f"original mount table saved to {self.backup}")
    return True

  def references_swapfile(self, line: str) -> bool:
    fields = line.strip().lstrip("#").split()
    return len(fields) > 0 and fields[0] == self.swapfile

  def remove_own_entries(self) -> int:
    lines = self.read_lines()
    remaining = [line for line in lines if not self.references_swapfile(line)]
    removed = len(lines) - len(remaining)
    if removed > 0:
      self.write_lines(remaining)
    return removed

  def disable_other_swaps(self) -> list[StateError]:
    """Comments out all active swap entries except the tool's own one. Lines that cannot be parsed
    are left untouched and returned so the caller can report them."""
    lines = self.read_lines()
    result: list[str] = []
    problems: list[StateError] = []
    for line in lines:
      try:
        entry = FstabEntry.parse(line)
      except StateError as e:
        problems.append(e)
        result.append(line)
        continue
      if entry is not None and entry.is_swap and entry.device != self.swapfile:
        result.append(f"# {line}")
      else:
        result.append(line)
    if result != lines:
      self.write_lines(result)
    return problems

  def has_own_entry(self) -> bool:
    for line in self.read_lines():
      entry = FstabEntry.parse_quietly(line)
      if entry is not None and entry.device == self.swapfile:
        return True
    return False

  def ensure_own_entry(self) -> bool:
    """Returns True if the entry had to be added."""
    if self.has_own_entry():
      return False
    self.write_lines([*self.read_lines(), self.own_entry()])
    return True

  def other_active_swaps(self) -> list[FstabEntry]:
    entries = [FstabEntry.parse_quietly(line) for line in self.read_lines()]
    return [entry for entry in entries if entry is not None and entry.is_swap and entry.device != self.swapfile]

  def state(self) -> FstabState:
    if not self.is_backed_up():
      return "unmodified"
    if self.other_active_swaps():
      return "backed-up"
    if not self.has_own_entry():
      return "other-entries-disabled"
    return "own-entry-present"
