"""Errors surfaced by the persistence gateway."""

from __future__ import annotations


class GatewayError(Exception):
    """A read or write against the entity store failed."""


class EntityNotFoundError(GatewayError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, record_id: object) -> None:
        super().__init__(f"{entity} {record_id} not found")
        self.entity = entity
        self.record_id = record_id
