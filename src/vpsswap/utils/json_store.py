from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


class JsonStore:
  store_file: str
  store: dict[str, Any]

  def __init__(self, store_file: str):
    self.store_file = store_file
    try:
      with open(self.store_file, encoding = 'utf-8') as fh:
        self.store = json.load(fh)
    except FileNotFoundError:
      self.store = {}

  def get(self, key, default = None):
    return self.store.get(key, default)

  def put(self, key, value):
    self.store[key] = value
    self.save()

  def save(self):
    Path(os.path.dirname(self.store_file)).mkdir(parents = True, exist_ok = True)
    with open(self.store_file, 'w+', encoding = 'utf-8') as fh:
      json.dump(self.store, fh, indent = 2)
