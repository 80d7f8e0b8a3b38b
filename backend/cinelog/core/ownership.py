from typing import Any, Callable, Iterable, List, TypeVar

from .exceptions import AccessDeniedException, EntryNotFoundException

T = TypeVar("T")


def owner_id(entity: Any) -> int:
    return entity.user_id


def load_owned(
    entity_id: int,
    user_id: int,
    loader: Callable[[int], T],
    owner_of: Callable[[T], int] = owner_id,
) -> T:
    """Load an entity and make sure it belongs to ``user_id``.

    ``loader`` raises EntryNotFoundException for unknown ids, so an existing
    entry owned by someone else yields 403 and a missing one 404.
    """
    entity = loader(entity_id)
    if owner_of(entity) != user_id:
        raise AccessDeniedException()
    return entity


def ensure_all_owned(
    entity_ids: Iterable[int],
    user_id: int,
    bulk_loader: Callable[[List[int]], List[T]],
    owner_of: Callable[[T], int] = owner_id,
    not_found_message: str = "Entry not found",
) -> List[T]:
    """Bulk variant of load_owned; returns entities in ``entity_ids`` order"""
    ids = list(entity_ids)
    found = {entity.id: entity for entity in bulk_loader(ids)}

    missing = [entity_id for entity_id in ids if entity_id not in found]
    if missing:
        raise EntryNotFoundException(f"{not_found_message}: {', '.join(str(i) for i in missing)}")

    if any(owner_of(entity) != user_id for entity in found.values()):
        raise AccessDeniedException()
    return [found[entity_id] for entity_id in ids]
