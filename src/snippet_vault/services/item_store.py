"""
Snippet storage across domains.

Each domain is a separate key/value storage area holding an ordered list
of snippet records under the ``snippets`` key. Records are validated once
here, at the storage boundary; the rest of the service works with typed
``Snippet`` values.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from snippet_vault.core.exceptions import (
    DuplicateInTargetError,
    InvalidInputError,
    NotFoundError,
    StorageDecodeError,
    StorageFailureError,
)
from snippet_vault.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from snippet_vault.services.kv_store import KeyValueStore

Domain = Literal["local", "sync"]

DOMAINS: tuple[Domain, ...] = get_args(Domain)

SNIPPETS_KEY = "snippets"


@dataclass(frozen=True)
class Snippet:
    """A stored piece of text with a stable identity."""

    id: str
    text: str
    domain: Domain
    created_at: datetime | None
    source_url: str | None = None


class SnippetRecord(BaseModel):
    """
    Persisted form of a snippet.

    Records written before ids existed have no ``id``; they are given one
    on load.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    text: str
    url: str | None = None
    date: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def empty_id_is_missing(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("snippet text must not be empty")
        return value


_records_adapter = TypeAdapter(list[SnippetRecord])


def generate_snippet_id() -> str:
    """Generate a new, never reused snippet id."""
    return str(uuid.uuid4())


def validate_domain(domain: str) -> Domain:
    """
    Check that a domain name is supported.

    Raises:
        InvalidInputError: If the domain is unknown
    """
    if domain not in DOMAINS:
        raise InvalidInputError(
            f"Unsupported storage domain: {domain}",
            {"domain": domain, "supported_domains": list(DOMAINS)},
        )
    return domain  # type: ignore[return-value]


def validate_text(text: str) -> str:
    """
    Check that snippet text is non-empty after trimming.

    Raises:
        InvalidInputError: If the text is empty or whitespace only
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError("Snippet text is required.")
    return text


def to_record(snippet: Snippet) -> dict[str, Any]:
    """Convert a snippet to its persisted JSON form."""
    return {
        "id": snippet.id,
        "text": snippet.text,
        "url": snippet.source_url,
        "date": snippet.created_at.isoformat() if snippet.created_at is not None else None,
    }


class ItemStore:
    """
    Uniform view over the snippet domains.

    Holds the loaded snippet list of every domain in memory. Mutations are
    written to the backing store first and only then become visible in
    memory, so a failed write leaves the previous list in place.
    """

    def __init__(
        self,
        stores: Mapping[Domain, KeyValueStore],
        id_factory: Callable[[], str] = generate_snippet_id,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        missing = set(DOMAINS) - set(stores)
        if missing:
            raise ValueError(f"Missing stores for domains: {sorted(missing)}")
        self._stores = dict(stores)
        self._id_factory = id_factory
        self._clock = clock
        self._items: dict[Domain, list[Snippet]] = {}
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        """Check whether every domain has been loaded."""
        return all(domain in self._items for domain in DOMAINS)

    def _decode(self, domain: Domain, raw: Any) -> tuple[list[Snippet], bool]:
        """Validate raw records and backfill missing ids."""
        try:
            records = _records_adapter.validate_python(raw)
        except ValidationError as e:
            raise StorageDecodeError(
                f"Snippets storage for {domain} is invalid: {e.error_count()} error(s)",
                {"domain": domain, "error_count": e.error_count(), "reason": str(e)},
            ) from e

        backfilled = False
        snippets: list[Snippet] = []
        for record in records:
            snippet_id = record.id
            if snippet_id is None:
                snippet_id = self._id_factory()
                backfilled = True
            snippets.append(
                Snippet(
                    id=snippet_id,
                    text=record.text,
                    domain=domain,
                    created_at=record.date,
                    source_url=record.url,
                )
            )
        return snippets, backfilled

    async def _write(self, domain: Domain, snippets: list[Snippet]) -> None:
        await self._stores[domain].set({SNIPPETS_KEY: [to_record(s) for s in snippets]})

    async def load(self, domain: str) -> list[Snippet]:
        """
        Load a domain's snippets from storage.

        A domain that has never been written is initialized to an empty
        list. Snippets without an id are assigned one, and the backfilled
        list is persisted before it is used.

        Raises:
            InvalidInputError: If the domain is unknown
            StorageDecodeError: If stored records are malformed
            StorageFailureError: If the storage read or write fails
        """
        domain = validate_domain(domain)
        logger = get_logger(__name__)

        async with self._lock:
            result = await self._stores[domain].get([SNIPPETS_KEY])
            if SNIPPETS_KEY not in result:
                await self._write(domain, [])
                self._items[domain] = []
                logger.info("Initialized empty snippet storage", extra={"domain": domain})
                return []

            snippets, backfilled = self._decode(domain, result[SNIPPETS_KEY])
            if backfilled:
                await self._write(domain, snippets)
                logger.info(
                    "Backfilled snippet ids",
                    extra={"domain": domain, "count": len(snippets)},
                )
            self._items[domain] = snippets

        logger.debug("Loaded snippets", extra={"domain": domain, "count": len(snippets)})
        return list(snippets)

    async def load_all(self) -> dict[Domain, list[Snippet]]:
        """Load every domain, in domain order."""
        return {domain: await self.load(domain) for domain in DOMAINS}

    async def save(self, domain: str, snippets: list[Snippet]) -> None:
        """
        Replace a domain's snippet list.

        Raises:
            InvalidInputError: If a snippet belongs to another domain or
                an id appears twice
            StorageFailureError: If the write fails
        """
        domain = validate_domain(domain)
        seen: set[str] = set()
        for snippet in snippets:
            if snippet.domain != domain:
                raise InvalidInputError(
                    f"Snippet {snippet.id} belongs to {snippet.domain}, not {domain}.",
                    {"snippet_id": snippet.id, "domain": domain},
                )
            if snippet.id in seen:
                raise InvalidInputError(
                    f"Duplicate snippet id {snippet.id} in {domain}.",
                    {"snippet_id": snippet.id, "domain": domain},
                )
            seen.add(snippet.id)

        async with self._lock:
            await self._write(domain, list(snippets))
            self._items[domain] = list(snippets)

    def items(self, domain: str) -> list[Snippet]:
        """Get a copy of a loaded domain's snippets, in stored order."""
        domain = validate_domain(domain)
        if domain not in self._items:
            raise RuntimeError(f"Snippets for {domain} are not loaded")
        return list(self._items[domain])

    def all_items(self) -> list[Snippet]:
        """Get every loaded snippet, domains in fixed order."""
        return [snippet for domain in DOMAINS for snippet in self.items(domain)]

    def live_ids(self) -> set[str]:
        """Get the ids of every snippet across all domains."""
        return {snippet.id for snippet in self.all_items()}

    def count(self, domain: str) -> int:
        """Get the number of snippets in a domain."""
        return len(self.items(domain))

    def _index_of(self, domain: Domain, item_id: str) -> int:
        if not isinstance(item_id, str) or not item_id:
            raise InvalidInputError("Snippet ID is required.")
        for index, snippet in enumerate(self.items(domain)):
            if snippet.id == item_id:
                return index
        raise NotFoundError(item_id, domain)

    def contains(self, item_id: str) -> bool:
        """Check whether any domain holds a snippet with this id."""
        return any(snippet.id == item_id for snippet in self.all_items())

    async def create_item(
        self,
        text: str,
        domain: str,
        source_url: str | None = None,
    ) -> Snippet:
        """
        Create a snippet with a fresh id and append it to a domain.

        Raises:
            InvalidInputError: If text is empty or the domain is unknown
            StorageFailureError: If the write fails
        """
        text = validate_text(text)
        domain = validate_domain(domain)
        snippet = Snippet(
            id=self._id_factory(),
            text=text,
            domain=domain,
            created_at=self._clock(),
            source_url=source_url,
        )

        async with self._lock:
            updated = [*self.items(domain), snippet]
            await self._write(domain, updated)
            self._items[domain] = updated

        get_logger(__name__).info(
            "Snippet created",
            extra={"snippet_id": snippet.id, "domain": domain, "length": len(text)},
        )
        return snippet

    async def move_item(self, item_id: str, from_domain: str, to_domain: str) -> Snippet:
        """
        Move a snippet to another domain.

        The target is written first. If the source write then fails, the
        target is restored, so the snippet ends up in exactly one domain.

        Raises:
            InvalidInputError: If the domains are unknown or identical
            NotFoundError: If the id is not in the source domain
            DuplicateInTargetError: If the id already exists in the target
            StorageFailureError: If a write fails
        """
        source_domain = validate_domain(from_domain)
        target_domain = validate_domain(to_domain)
        if source_domain == target_domain:
            raise InvalidInputError(
                "Target storage domain must be different.",
                {"domain": source_domain},
            )
        logger = get_logger(__name__)

        async with self._lock:
            source = self.items(source_domain)
            target = self.items(target_domain)
            index = self._index_of(source_domain, item_id)
            if any(snippet.id == item_id for snippet in target):
                raise DuplicateInTargetError(item_id, target_domain)

            moved = replace(source[index], domain=target_domain)
            new_source = source[:index] + source[index + 1 :]
            new_target = [*target, moved]

            await self._write(target_domain, new_target)
            try:
                await self._write(source_domain, new_source)
            except StorageFailureError:
                try:
                    await self._write(target_domain, target)
                except StorageFailureError:
                    logger.exception(
                        "Failed to restore target domain after move failure",
                        extra={"snippet_id": item_id, "domain": target_domain},
                    )
                raise

            self._items[source_domain] = new_source
            self._items[target_domain] = new_target

        logger.info(
            "Snippet moved",
            extra={"snippet_id": item_id, "from": source_domain, "to": target_domain},
        )
        return moved

    async def delete_item(self, domain: str, item_id: str) -> Snippet:
        """
        Delete a snippet from a domain.

        Raises:
            NotFoundError: If the id is not in the domain
            StorageFailureError: If the write fails
        """
        domain = validate_domain(domain)

        async with self._lock:
            current = self.items(domain)
            index = self._index_of(domain, item_id)
            removed = current[index]
            updated = current[:index] + current[index + 1 :]
            await self._write(domain, updated)
            self._items[domain] = updated

        get_logger(__name__).info(
            "Snippet deleted",
            extra={"snippet_id": item_id, "domain": domain},
        )
        return removed

    async def clear(self, domain: str) -> int:
        """
        Delete every snippet in a domain.

        Returns:
            Number of snippets removed
        """
        domain = validate_domain(domain)

        async with self._lock:
            removed = len(self.items(domain))
            await self._write(domain, [])
            self._items[domain] = []

        get_logger(__name__).info(
            "Snippet domain cleared",
            extra={"domain": domain, "deleted_count": removed},
        )
        return removed
