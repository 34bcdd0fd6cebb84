"""Identifier source for new folders and links."""

from typing import Callable
from uuid import uuid4

IdSource = Callable[[], str]


def new_id() -> str:
    return uuid4().hex
