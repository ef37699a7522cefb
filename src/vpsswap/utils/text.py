from __future__ import annotations

from shutil import get_terminal_size

BLUE = '\033[0;34m'
CYAN = '\033[0;36m'
GREEN = '\033[0;32m'
YELLOW = '\033[0;33m'
RED = '\033[0;31m'
PURPLE = '\033[0;35m'
BOLD = '\033[1m'
ENDC = '\033[0m'


def printc(line: str):
  from vpsswap.utils.logging import logger
  logger.echo(f"{ENDC}{line}{ENDC}")


def print_listitem(line: str):
  printc(f"- {line}")


def print_divider_line():
  printc(f"{'-' * (get_terminal_size().columns - 1)}")


def strip_colors(line: str) -> str:
  result = line
  for x in [BLUE, CYAN, GREEN, YELLOW, RED, PURPLE, BOLD, ENDC]:
    result = result.replace(x, "")
  return result


def format_mb(size_mb: int) -> str:
  if size_mb >= 1024:
    return f"{size_mb / 1024:.1f}G"
  return f"{size_mb}M"
