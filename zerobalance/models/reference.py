"""
Reference Data Adapter

The caller supplies its current users and categories on EVERY call.
Nothing is cached between calls; this module only reshapes the lists into
lookup-friendly form for one resolution.

Category resolution is an ordered chain of strategies:

    exact match -> named default ("Other") -> first available -> literal id

The last three tiers alone give the DEFAULT category. Each tier is a plain
function so the order can be tested on its own.
"""

from typing import Callable, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from zerobalance.config import ResolverSettings


class ReferenceEntity(BaseModel):
    """A caller-supplied {id, name} pair. Used for both users and categories."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1)
    name: str


class CategoryResolution(BaseModel):
    """Which category id was chosen, and by which strategy."""

    category_id: str
    strategy: str


def normalize_name(name: str) -> str:
    return name.strip().lower()


EntityLike = Union[ReferenceEntity, dict]


def _coerce_entities(entities: Optional[Iterable[EntityLike]]) -> tuple[ReferenceEntity, ...]:
    if not entities:
        return ()
    return tuple(
        e if isinstance(e, ReferenceEntity) else ReferenceEntity.model_validate(e)
        for e in entities
    )


def _build_index(entities: tuple[ReferenceEntity, ...]) -> dict[str, str]:
    # First entity wins on duplicate names
    index: dict[str, str] = {}
    for entity in entities:
        index.setdefault(normalize_name(entity.name), entity.id)
    return index


class ReferenceData:
    """
    Request-scoped lookup tables over the caller's users and categories.

    Usage:
        ref = ReferenceData(users, categories)
        ref.resolve_category("groceries").category_id
    """

    def __init__(
        self,
        users: Optional[Iterable[EntityLike]] = None,
        categories: Optional[Iterable[EntityLike]] = None,
        settings: Optional[ResolverSettings] = None,
    ):
        self._settings = settings or ResolverSettings()
        self.users = _coerce_entities(users)
        self.categories = _coerce_entities(categories)
        self._category_index = _build_index(self.categories)

    @property
    def other_category_name(self) -> str:
        return self._settings.other_category_name

    @property
    def fallback_category_id(self) -> str:
        return self._settings.fallback_category_id

    def find_category_id(self, name: Optional[str]) -> Optional[str]:
        """Exact, case-insensitive name lookup. No fuzzy matching."""
        if not isinstance(name, str) or not name.strip():
            return None
        return self._category_index.get(normalize_name(name))

    def resolve_category(self, name: Optional[str] = None) -> CategoryResolution:
        """Walk the strategy chain; the literal tier always answers."""
        for strategy_name, strategy in CATEGORY_RESOLUTION_CHAIN:
            category_id = strategy(self, name)
            if category_id:
                return CategoryResolution(category_id=category_id, strategy=strategy_name)
        # Unreachable: the literal tier is a required, non-empty setting
        raise RuntimeError("category resolution chain produced no id")

    @property
    def default_category(self) -> CategoryResolution:
        return self.resolve_category(None)


# =============================================================================
# CATEGORY STRATEGIES
# =============================================================================

CategoryStrategy = Callable[[ReferenceData, Optional[str]], Optional[str]]


def exact_match(ref: ReferenceData, name: Optional[str]) -> Optional[str]:
    return ref.find_category_id(name)


def named_default(ref: ReferenceData, name: Optional[str]) -> Optional[str]:
    return ref.find_category_id(ref.other_category_name)


def first_available(ref: ReferenceData, name: Optional[str]) -> Optional[str]:
    return ref.categories[0].id if ref.categories else None


def literal_fallback(ref: ReferenceData, name: Optional[str]) -> Optional[str]:
    return ref.fallback_category_id


CATEGORY_RESOLUTION_CHAIN: tuple[tuple[str, CategoryStrategy], ...] = (
    ("exact_match", exact_match),
    ("named_default", named_default),
    ("first_available", first_available),
    ("literal_fallback", literal_fallback),
)
