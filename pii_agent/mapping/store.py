from pii_agent.mapping.exceptions import (
    ConflictingSubstituteError,
    DuplicateIdError,
    InvalidSubstituteError,
    UnknownEntityError,
)
from pii_agent.mapping.models import Entity, EntityType


class MappingStore:
    """Insertion-ordered table of original <-> substitute pairs for one run.

    The store is the single source of truth the revert step consults. It is
    never overwritten implicitly; only ``clear()`` empties it.
    """

    def __init__(self) -> None:
        self._entities: dict[str, Entity] = {}
        self._substitutes: dict[tuple[str, EntityType], str] = {}

    def put(self, entity: Entity) -> None:
        if entity.id in self._entities:
            raise DuplicateIdError(f"Entity id '{entity.id}' already present")
        if entity.substitute is not None:
            self._check_substitute(entity, entity.substitute)
            self._substitutes[(entity.original, entity.type)] = entity.substitute
        self._entities[entity.id] = entity

    def get(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def all(self) -> list[Entity]:
        return list(self._entities.values())

    def filled(self) -> list[Entity]:
        """Entities that already carry a substitute, in insertion order."""
        return [e for e in self._entities.values() if e.is_filled]

    def substitute_for(self, original: str, entity_type: EntityType) -> str | None:
        return self._substitutes.get((original, entity_type))

    def assign_substitute(self, entity_id: str, substitute: str) -> Entity:
        """Record *substitute* for the entity with *entity_id*.

        Raises:
            UnknownEntityError: the id is not in the store.
            InvalidSubstituteError: empty or identical to the original.
            ConflictingSubstituteError: the (original, type) pair already maps
                to a different substitute.
        """
        entity = self._entities.get(entity_id)
        if entity is None:
            raise UnknownEntityError(f"Entity id '{entity_id}' not found")
        self._check_substitute(entity, substitute)
        entity.substitute = substitute
        self._substitutes[(entity.original, entity.type)] = substitute
        return entity

    def clear(self) -> int:
        """Empty the store and return how many entities were dropped."""
        dropped = len(self._entities)
        self._entities.clear()
        self._substitutes.clear()
        return dropped

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def _check_substitute(self, entity: Entity, substitute: str) -> None:
        if not substitute:
            raise InvalidSubstituteError(f"Empty substitute for entity '{entity.id}'")
        if substitute == entity.original:
            raise InvalidSubstituteError(
                f"Substitute for entity '{entity.id}' equals its original value"
            )
        existing = self._substitutes.get((entity.original, entity.type))
        if existing is not None and existing != substitute:
            raise ConflictingSubstituteError(
                f"{entity.type.value} value already mapped to a different substitute"
            )
