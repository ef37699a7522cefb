from __future__ import annotations

import os
from abc import ABCMeta, abstractmethod
from shlex import quote

import psutil

from vpsswap.errors import ResourceError
from vpsswap.model import DiskSpace, MIB, MemoryProfile
from vpsswap.utils.shell import shell, shell_success


DEVICE_TAGS = {
  "UUID": "/dev/disk/by-uuid",
  "LABEL": "/dev/disk/by-label",
  "PARTUUID": "/dev/disk/by-partuuid",
  "PARTLABEL": "/dev/disk/by-partlabel",
}


def resolve_device(device: str) -> str:
  """Maps mount table device specs like `UUID=...` to the device node they stand for."""
  tag, separator, value = device.partition("=")
  if separator and tag in DEVICE_TAGS:
    device = os.path.join(DEVICE_TAGS[tag], value)
  return os.path.realpath(device)


def to_mb(size_bytes: int) -> int:
  # mkswap reserves a header page, so an active 2048MB swapfile reports 4KB less than its size
  return (size_bytes + MIB // 2) // MIB


class SystemAdapter(metaclass = ABCMeta):
  """Everything the swap reconciliation needs from the operating system besides plain text files."""

  @abstractmethod
  def memory_profile(self) -> MemoryProfile:
    pass

  @abstractmethod
  def disk_space(self, path: str) -> DiskSpace:
    """Size and free space of the filesystem that holds (or will hold) the given path."""
    pass

  @abstractmethod
  def is_active_swap(self, path: str) -> bool:
    pass

  @abstractmethod
  def allocate_fast(self, path: str, size_mb: int):
    pass

  @abstractmethod
  def allocate_zero_fill(self, path: str, size_mb: int):
    pass

  @abstractmethod
  def make_swap(self, path: str):
    pass

  @abstractmethod
  def swap_on(self, path: str):
    pass

  @abstractmethod
  def swap_off(self, path: str):
    pass

  @abstractmethod
  def apply_sysctl(self, key: str, value: str):
    pass


class LinuxSystem(SystemAdapter):
  proc_swaps: str

  def __init__(self, proc_swaps: str = "/proc/swaps"):
    self.proc_swaps = proc_swaps

  def memory_profile(self) -> MemoryProfile:
    return MemoryProfile(
      total_mem_mb = to_mb(psutil.virtual_memory().total),
      current_swap_mb = to_mb(psutil.swap_memory().total),
    )

  def disk_space(self, path: str) -> DiskSpace:
    directory = os.path.dirname(os.path.abspath(path)) or "/"
    usage = psutil.disk_usage(directory)
    return DiskSpace(total_mb = usage.total // MIB, free_mb = usage.free // MIB)

  def active_swaps(self) -> list[str]:
    with open(self.proc_swaps, encoding = "utf-8") as fh:
      lines = fh.read().splitlines()
    # first line is the column header
    return [line.split()[0] for line in lines[1:] if line.strip()]

  def is_active_swap(self, path: str) -> bool:
    target = resolve_device(path)
    return any(os.path.realpath(name) == target for name in self.active_swaps())

  def allocate_fast(self, path: str, size_mb: int):
    if not shell_success("command -v fallocate"):
      raise ResourceError("fallocate is not installed")
    shell(f"fallocate -l {size_mb}M {quote(path)}")

  def allocate_zero_fill(self, path: str, size_mb: int):
    shell(f"dd if=/dev/zero of={quote(path)} bs=1M count={size_mb} status=progress")

  def make_swap(self, path: str):
    shell(f"mkswap {quote(path)}")

  def swap_on(self, path: str):
    shell(f"swapon {quote(path)}")

  def swap_off(self, path: str):
    shell(f"swapoff {quote(resolve_device(path))}")

  def apply_sysctl(self, key: str, value: str):
    shell(f"sysctl -w {quote(f'{key}={value}')}")
