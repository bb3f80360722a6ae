"""Exceptions used inside a unit of work to abort it."""

from __future__ import annotations


class EntityInvalid(Exception):
    """An entity failed validation; raised to roll back the surrounding transaction."""

    def __init__(self, messages: list[str]):
        super().__init__("; ".join(messages))
        self.messages = messages
