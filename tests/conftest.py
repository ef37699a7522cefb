from __future__ import annotations

import os
import stat
from subprocess import CalledProcessError

import pytest

from vpsswap.config import RunConfig
from vpsswap.managers.swapfile import SwapfileManager
from vpsswap.model import DiskSpace, MIB, MemoryProfile
from vpsswap.system import SystemAdapter
from vpsswap.utils.json_store import JsonStore
from vpsswap.utils.logging import logger

FSTAB = """\
# /etc/fstab: static file system information.
UUID=3409a847-0bd6-43e4-96fd-6e8be4e3c58d  /      ext4  rw,noatime 0 1
UUID=AF4E-18BD                             /boot  vfat  rw,defaults 0 2
"""


class FakeSystem(SystemAdapter):
  """Keeps the kernel side (active swaps, sysctl values) in memory and creates real (sparse)
  files for allocations, so the reconcile steps can be checked against the filesystem."""

  def __init__(self, total_mem_mb: int = 1024, disk: DiskSpace | None = None):
    self.total_mem_mb = total_mem_mb
    self.disk = disk or DiskSpace(total_mb = 40960, free_mb = 30720)
    self.active: dict[str, int] = {}
    self.sysctl: dict[str, str] = {}
    self.calls: list[str] = []
    self.format_modes: list[int] = []
    self.fail_fallocate = False
    self.fail_zero_fill = False
    self.fail_mkswap = False
    self.fail_swapon = False
    self.fail_swapoff: set[str] = set()
    self.short_by_bytes = 0

  def memory_profile(self) -> MemoryProfile:
    return MemoryProfile(total_mem_mb = self.total_mem_mb, current_swap_mb = sum(self.active.values()))

  def disk_space(self, path: str) -> DiskSpace:
    return self.disk

  def is_active_swap(self, path: str) -> bool:
    return path in self.active

  def allocate_fast(self, path: str, size_mb: int):
    self.calls.append("fallocate")
    if self.fail_fallocate:
      raise CalledProcessError(1, f"fallocate -l {size_mb}M {path}")
    self.write_file(path, size_mb)

  def allocate_zero_fill(self, path: str, size_mb: int):
    self.calls.append("dd")
    if self.fail_zero_fill:
      raise CalledProcessError(1, f"dd of={path}")
    self.write_file(path, size_mb)

  def write_file(self, path: str, size_mb: int):
    with open(path, "wb") as fh:
      fh.truncate(size_mb * MIB - self.short_by_bytes)

  def make_swap(self, path: str):
    self.calls.append("mkswap")
    self.format_modes.append(stat.S_IMODE(os.stat(path).st_mode))
    if self.fail_mkswap:
      raise CalledProcessError(1, f"mkswap {path}")

  def swap_on(self, path: str):
    self.calls.append("swapon")
    if self.fail_swapon:
      raise CalledProcessError(255, f"swapon {path}")
    self.active[path] = os.stat(path).st_size // MIB

  def swap_off(self, path: str):
    self.calls.append("swapoff")
    if path not in self.active or path in self.fail_swapoff:
      raise CalledProcessError(255, f"swapoff {path}")
    del self.active[path]

  def apply_sysctl(self, key: str, value: str):
    self.sysctl[key] = value


@pytest.fixture(autouse = True)
def clean_logger():
  logger.clear()
  yield
  logger.detach()
  logger.clear()


@pytest.fixture
def config(tmp_path) -> RunConfig:
  (tmp_path / "fstab").write_text(FSTAB)
  (tmp_path / "sysctl.conf").write_text("# kernel tuning\nnet.ipv4.tcp_congestion_control=bbr\n")
  return RunConfig(
    swapfile = str(tmp_path / "swapfile_by_script"),
    fstab = str(tmp_path / "fstab"),
    fstab_backup = str(tmp_path / "fstab.bak_by_script"),
    sysctl_conf = str(tmp_path / "sysctl.conf"),
    lock_file = str(tmp_path / "vpsswap.lock"),
    lock_timeout = 0,
    store_file = str(tmp_path / "cache" / "state.json"),
    assume_yes = True,
  )


@pytest.fixture
def system() -> FakeSystem:
  return FakeSystem()


@pytest.fixture
def store(config) -> JsonStore:
  return JsonStore(config.store_file)


@pytest.fixture
def manager(config, system, store) -> SwapfileManager:
  return SwapfileManager(config, system, store)
