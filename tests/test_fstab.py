import pytest

from vpsswap.errors import StateError
from vpsswap.managers.fstab import FstabEntry, FstabReconciler
from vpsswap.utils.json_store import JsonStore

OTHER_SWAPS = """\
UUID=3409a847  /  ext4  rw,noatime 0 1
/dev/vda2  none  swap  sw  0 0
# /swap.img  none  swap  sw  0 0
/swap.img	none	swap	sw	0	0
"""


@pytest.fixture
def fstab(config, store) -> FstabReconciler:
  return FstabReconciler(
    fstab = config.fstab,
    backup = config.fstab_backup,
    swapfile = config.swapfile,
    store = store,
  )


def read(path) -> str:
  with open(path, encoding = "utf-8") as fh:
    return fh.read()


def write(path, content: str):
  with open(path, "w", encoding = "utf-8") as fh:
    fh.write(content)


def test_parse_entry():
  entry = FstabEntry.parse("/dev/vda2  none  swap  sw  0 0")
  assert entry is not None
  assert entry.device == "/dev/vda2"
  assert entry.is_swap


@pytest.mark.parametrize("line", ["", "   ", "# /dev/vda2 none swap sw 0 0", "proc /proc"])
def test_parse_ignores_comments_and_irrelevant_lines(line):
  assert FstabEntry.parse(line) is None


def test_parse_rejects_malformed_swap_line():
  with pytest.raises(StateError):
    FstabEntry.parse("/dev/vda2 swap")


def test_backup_is_created_only_once(config, fstab):
  assert fstab.state() == "unmodified"
  assert fstab.ensure_backup()
  original = read(config.fstab_backup)
  write(config.fstab, "changed\n")
  assert not fstab.ensure_backup()
  assert read(config.fstab_backup) == original
  assert fstab.state() != "unmodified"


def test_backup_is_remembered_in_store(config, fstab):
  fstab.ensure_backup()
  store = JsonStore(config.store_file)
  assert store.get("fstab_backup") == config.fstab_backup


def test_first_modification_creates_backup_of_original(config, fstab):
  original = read(config.fstab)
  fstab.ensure_own_entry()
  assert read(config.fstab_backup) == original


def test_disable_other_swaps_preserves_text(config, fstab):
  write(config.fstab, OTHER_SWAPS)
  assert fstab.disable_other_swaps() == []
  assert read(config.fstab) == (
    "UUID=3409a847  /  ext4  rw,noatime 0 1\n"
    "# /dev/vda2  none  swap  sw  0 0\n"
    "# /swap.img  none  swap  sw  0 0\n"
    "# /swap.img\tnone\tswap\tsw\t0\t0\n"
  )
  assert fstab.other_active_swaps() == []


def test_disable_other_swaps_keeps_own_entry(config, fstab):
  write(config.fstab, f"{config.swapfile} none swap sw 0 0\n/dev/vda2 none swap sw 0 0\n")
  fstab.disable_other_swaps()
  assert read(config.fstab) == f"{config.swapfile} none swap sw 0 0\n# /dev/vda2 none swap sw 0 0\n"


def test_disable_other_swaps_leaves_malformed_lines(config, fstab):
  write(config.fstab, "/dev/vda2 swap\n/dev/vda3 none swap sw 0 0\n")
  problems = fstab.disable_other_swaps()
  assert len(problems) == 1
  assert problems[0].line == "/dev/vda2 swap"
  assert read(config.fstab) == "/dev/vda2 swap\n# /dev/vda3 none swap sw 0 0\n"


def test_own_entry_is_added_once(config, fstab):
  assert fstab.ensure_own_entry()
  assert not fstab.ensure_own_entry()
  assert read(config.fstab).count(config.swapfile) == 1
  assert fstab.state() == "own-entry-present"


def test_remove_own_entries_including_commented_ones(config, fstab):
  write(config.fstab, f"{config.swapfile} none swap sw 0 0\n#{config.swapfile} none swap sw 0 0\n/dev/vda1 / ext4 rw 0 1\n")
  assert fstab.remove_own_entries() == 2
  assert read(config.fstab) == "/dev/vda1 / ext4 rw 0 1\n"


def test_remove_own_entries_ignores_similar_paths(config, fstab):
  write(config.fstab, f"{config.swapfile}.old none swap sw 0 0\n")
  assert fstab.remove_own_entries() == 0
  assert not fstab.is_backed_up()


def test_state_machine_converges(config, fstab):
  write(config.fstab, OTHER_SWAPS)
  contents = []
  for _ in range(3):
    fstab.ensure_backup()
    assert fstab.state() in ("backed-up", "own-entry-present")
    fstab.disable_other_swaps()
    fstab.ensure_own_entry()
    assert fstab.state() == "own-entry-present"
    contents.append(read(config.fstab))
  assert contents[0] == contents[1] == contents[2]
  assert read(config.fstab_backup) == OTHER_SWAPS
